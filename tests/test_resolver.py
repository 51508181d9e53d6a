from planexec.plan import DependencyEdge, DependencyKind, Plan, Subtask, eligible, preview_rounds


def _plan(ids, edges):
    return Plan(
        [Subtask(subtask_id, f"task {subtask_id}") for subtask_id in ids],
        [DependencyEdge(source, target, kind) for source, target, kind in edges],
    )


REQ = DependencyKind.REQUIRES


def test_subtasks_without_requires_edges_are_eligible_immediately():
    plan = _plan("ABC", [("A", "B", REQ), ("A", "C", REQ)])

    assert eligible(plan, set(), set()) == {"A"}


def test_dependents_become_eligible_once_predecessor_completed():
    plan = _plan("ABC", [("A", "B", REQ), ("A", "C", REQ)])

    assert eligible(plan, {"A"}, set()) == {"B", "C"}


def test_completed_and_in_flight_subtasks_are_excluded():
    plan = _plan("ABC", [])

    assert eligible(plan, {"A"}, {"B"}) == {"C"}


def test_informational_edges_do_not_order_execution():
    plan = _plan("AB", [("A", "B", DependencyKind.ENHANCES), ("B", "A", DependencyKind.PARALLEL)])

    assert eligible(plan, set(), set()) == {"A", "B"}


def test_all_requires_predecessors_must_be_completed():
    plan = _plan("ABC", [("A", "C", REQ), ("B", "C", REQ)])

    assert "C" not in eligible(plan, {"A"}, {"B"})
    assert eligible(plan, {"A", "B"}, set()) == {"C"}


def test_eligible_is_deterministic_for_identical_inputs():
    plan = _plan("ABCD", [("A", "C", REQ), ("B", "D", REQ)])
    completed, in_flight = {"A"}, {"B"}

    assert eligible(plan, completed, in_flight) == eligible(plan, completed, in_flight)
    assert completed == {"A"} and in_flight == {"B"}


def test_preview_rounds_layers_the_plan():
    plan = _plan("ABCD", [("A", "B", REQ), ("A", "C", REQ), ("B", "D", REQ), ("C", "D", REQ)])

    preview = preview_rounds(plan)

    assert preview.rounds == (("A",), ("B", "C"), ("D",))
    assert preview.is_satisfiable


def test_preview_rounds_reports_cycles_as_stuck():
    plan = _plan("XAB", [("A", "B", REQ), ("B", "A", REQ)])

    preview = preview_rounds(plan)

    assert preview.rounds == (("X",),)
    assert preview.stuck == ("A", "B")
    assert not preview.is_satisfiable
