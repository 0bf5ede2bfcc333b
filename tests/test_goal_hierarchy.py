"""Tests for goal hierarchy organization, depth/path queries and subtree copies."""
import pytest

from caseload.schemas.goal import Goal
from caseload.services.goal_hierarchy import (
    CycleDetected,
    ParentNotFound,
    collect_subtree,
    copy_subtree,
    depth_of,
    format_path,
    is_goal_achieved,
    organize_hierarchy,
    path_of,
)


def make_goal(goal_id, parent=None, description=None, **fields):
    return Goal(
        id=goal_id,
        student_id="student-1",
        parent_goal_id=parent,
        description=description or f"Goal {goal_id}",
        **fields,
    )


@pytest.fixture
def articulation_tree():
    # A -> B -> C, A -> D, E standalone
    return [
        make_goal("A", description="Articulation"),
        make_goal("B", "A", description="R blends"),
        make_goal("C", "B", description="Initial position"),
        make_goal("D", "A", description="S blends"),
        make_goal("E", description="Fluency"),
    ]


def test_three_level_chain():
    a, b, c = make_goal("A"), make_goal("B", "A"), make_goal("C", "B")

    hierarchy = organize_hierarchy([a, b, c])

    assert hierarchy.parent_goals == [a]
    assert hierarchy.sub_goals_by_parent == {"A": [b], "B": [c]}
    assert hierarchy.orphan_goals == []


def test_every_goal_lands_in_exactly_one_bucket(articulation_tree):
    hierarchy = organize_hierarchy(articulation_tree)

    placed = [g.id for g in hierarchy.parent_goals] + [g.id for g in hierarchy.orphan_goals]
    for children in hierarchy.sub_goals_by_parent.values():
        placed.extend(g.id for g in children)

    assert sorted(placed) == ["A", "B", "C", "D", "E"]
    assert [g.id for g in hierarchy.orphan_goals] == ["E"]


def test_children_keep_input_order(articulation_tree):
    hierarchy = organize_hierarchy(articulation_tree)
    assert [g.id for g in hierarchy.sub_goals_by_parent["A"]] == ["B", "D"]


def test_empty_and_none_entries():
    assert organize_hierarchy([]).model_dump() == {
        "parent_goals": [],
        "sub_goals_by_parent": {},
        "orphan_goals": [],
        "unresolved_goals": [],
    }

    a = make_goal("A")
    hierarchy = organize_hierarchy([None, a, None])
    assert hierarchy.orphan_goals == [a]


def test_dangling_parent_is_reported_not_promoted():
    a = make_goal("A")
    stray = make_goal("X", "missing")

    hierarchy = organize_hierarchy([a, stray])

    assert hierarchy.orphan_goals == [a]
    assert hierarchy.parent_goals == []
    assert hierarchy.unresolved_goals == [stray]
    assert "missing" not in hierarchy.sub_goals_by_parent


def test_dangling_parent_strict():
    with pytest.raises(ParentNotFound) as exc:
        organize_hierarchy([make_goal("X", "missing")], strict=True)
    assert exc.value.parent_goal_id == "missing"


def test_depth_and_path(articulation_tree):
    by_id = {g.id: g for g in articulation_tree}

    assert depth_of(by_id["A"], articulation_tree) == 0
    assert depth_of(by_id["B"], articulation_tree) == 1
    assert depth_of(by_id["C"], articulation_tree) == 2

    assert path_of(by_id["C"], articulation_tree) == ["Articulation", "R blends", "Initial position"]
    assert format_path(by_id["C"], articulation_tree) == "Articulation > R blends > Initial position"

    for goal in articulation_tree:
        assert len(path_of(goal, articulation_tree)) == depth_of(goal, articulation_tree) + 1
        if goal.parent_goal_id:
            parent = by_id[goal.parent_goal_id]
            assert depth_of(goal, articulation_tree) == 1 + depth_of(parent, articulation_tree)


def test_depth_stops_at_dangling_reference():
    stray = make_goal("X", "missing")
    assert depth_of(stray, [stray]) == 0
    assert path_of(stray, [stray]) == ["Goal X"]


def test_cycle_is_detected():
    a, b = make_goal("A", "B"), make_goal("B", "A")

    with pytest.raises(CycleDetected) as exc:
        depth_of(a, [a, b])
    assert exc.value.goal_ids == ["A", "B", "A"]

    with pytest.raises(CycleDetected):
        path_of(b, [a, b])

    # grouping still terminates; neither goal is a root
    hierarchy = organize_hierarchy([a, b])
    assert hierarchy.parent_goals == [] and hierarchy.orphan_goals == []


def test_self_parent_is_a_cycle():
    a = make_goal("A", "A")
    with pytest.raises(CycleDetected):
        depth_of(a, [a])


def test_collect_subtree(articulation_tree):
    assert [g.id for g in collect_subtree("A", articulation_tree)] == ["A", "B", "C", "D"]
    assert [g.id for g in collect_subtree("B", articulation_tree)] == ["B", "C"]
    assert collect_subtree("nope", articulation_tree) == []


def test_copy_subtree_remaps_parents_and_text(articulation_tree):
    by_id = {g.id: g for g in articulation_tree}
    original = by_id["B"].model_copy(update={"status": "achieved", "date_achieved": "2024-01-01T00:00:00"})
    goals = [original if g.id == "B" else g for g in articulation_tree]

    new_goals, id_map = copy_subtree(original, goals, replacements=[("R", "L")], new_parent_goal_id="E")

    assert set(id_map) == {"B", "C"}
    assert {g.id for g in new_goals} == set(id_map.values())
    root_copy, child_copy = new_goals
    assert root_copy.parent_goal_id == "E"
    assert child_copy.parent_goal_id == root_copy.id
    assert root_copy.description == "L blends"
    assert root_copy.date_achieved is None
    assert root_copy.status == "achieved"


def test_copy_subtree_without_new_parent_is_top_level(articulation_tree):
    by_id = {g.id: g for g in articulation_tree}
    new_goals, _ = copy_subtree(by_id["C"], articulation_tree)

    assert len(new_goals) == 1
    assert new_goals[0].parent_goal_id is None
    assert new_goals[0].description == "Initial position"


def test_is_goal_achieved():
    parent = make_goal("A", status="achieved")
    child = make_goal("B", "A")
    other = make_goal("C")

    assert is_goal_achieved(parent, [parent, child])
    assert is_goal_achieved(child, [parent, child])
    assert not is_goal_achieved(other, [parent, child, other])
