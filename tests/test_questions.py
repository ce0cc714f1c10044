from forkcheck.services.questions import (
    assign_question,
    assigned_question_ids,
    next_sort_order,
    resolve_questions,
    unassign_question,
)


def _texts(questions):
    return [q.question_text for q in questions]


def test_global_mode_returns_active_questions_in_order(db, make_unit, make_question):
    unit = make_unit()
    make_question("Second", 2)
    make_question("First", 1)
    make_question("Retired", 3, is_active=False)

    assert _texts(resolve_questions(db, unit.id, mode="global")) == ["First", "Second"]
    assert _texts(resolve_questions(db, None, mode="global")) == ["First", "Second"]


def test_global_mode_ignores_assignments(db, make_unit, make_question):
    unit = make_unit()
    q1 = make_question("First", 1)
    make_question("Second", 2)
    assign_question(db, unit.id, q1.id)
    db.commit()

    assert _texts(resolve_questions(db, unit.id, mode="global")) == ["First", "Second"]


def test_per_equipment_mode_uses_assignments(db, make_unit, make_question):
    e1 = make_unit(name="A", unit_number="A-1")
    e2 = make_unit(name="B", unit_number="B-1")
    q1 = make_question("Forks", 1)
    q2 = make_question("Horn", 2)
    q3 = make_question("Brakes", 3)
    for q in (q3, q1):
        assign_question(db, e1.id, q.id)
    assign_question(db, e2.id, q2.id)
    db.commit()

    assert _texts(resolve_questions(db, e1.id, mode="per_equipment")) == ["Forks", "Brakes"]
    assert _texts(resolve_questions(db, e2.id, mode="per_equipment")) == ["Horn"]


def test_per_equipment_without_assignments_is_empty_unless_fallback(db, make_unit, make_question):
    unit = make_unit()
    make_question("Forks", 1)

    assert resolve_questions(db, unit.id, mode="per_equipment", fallback=False) == []
    assert _texts(resolve_questions(db, unit.id, mode="per_equipment", fallback=True)) == ["Forks"]


def test_assigned_but_inactive_does_not_fall_back(db, make_unit, make_question):
    unit = make_unit()
    retired = make_question("Retired", 1, is_active=False)
    make_question("Forks", 2)
    assign_question(db, unit.id, retired.id)
    db.commit()

    assert resolve_questions(db, unit.id, mode="per_equipment", fallback=True) == []


def test_per_equipment_without_unit_is_empty(db, make_question):
    make_question("Forks", 1)

    assert resolve_questions(db, None, mode="per_equipment", fallback=True) == []


def test_mode_defaults_to_settings(db, configure, make_unit, make_question):
    unit = make_unit()
    make_question("Forks", 1)

    assert len(resolve_questions(db, unit.id)) == 1
    configure(question_mode="per_equipment")
    assert resolve_questions(db, unit.id) == []


def test_assign_and_unassign_are_idempotent(db, make_unit, make_question):
    unit = make_unit()
    q = make_question("Forks", 1)

    assert assign_question(db, unit.id, q.id) is True
    assert assign_question(db, unit.id, q.id) is False
    db.commit()
    assert assigned_question_ids(db, unit.id) == [q.id]

    assert unassign_question(db, unit.id, q.id) is True
    assert unassign_question(db, unit.id, q.id) is False
    db.commit()
    assert assigned_question_ids(db, unit.id) == []


def test_next_sort_order(db, make_question):
    assert next_sort_order(db) == 1
    make_question("Forks", 4)
    assert next_sort_order(db) == 5


def test_questions_endpoint_per_equipment(client, configure, checklist, db):
    unit, questions, _ = checklist
    configure(question_mode="per_equipment")
    assign_question(db, unit.id, questions[1].id)
    db.commit()

    r = client.get("/checklist/questions", params={"forklift_id": str(unit.id)})

    assert r.status_code == 200
    assert [q["id"] for q in r.json()] == [str(questions[1].id)]
