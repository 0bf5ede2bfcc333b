from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from caseload.schemas.goal import Goal, GoalHierarchy
from caseload.utils.dates import new_id, utc_now

logger = logging.getLogger(__name__)


class CycleDetected(ValueError):
    """Raised when following parent_goal_id links revisits a goal."""

    def __init__(self, goal_ids: List[str]):
        self.goal_ids = goal_ids
        super().__init__(f"Cycle in goal hierarchy: {' -> '.join(goal_ids)}")


class ParentNotFound(LookupError):
    """Raised in strict mode when a goal's parent is not in the given scope."""

    def __init__(self, goal_id: str, parent_goal_id: str):
        self.goal_id = goal_id
        self.parent_goal_id = parent_goal_id
        super().__init__(f"Parent goal {parent_goal_id} of goal {goal_id} not found")


def _valid(goals: Iterable[Optional[Goal]]) -> List[Goal]:
    return [g for g in goals if g is not None]


def _index(goals: Iterable[Optional[Goal]]) -> Dict[str, Goal]:
    return {g.id: g for g in _valid(goals)}


def organize_hierarchy(goals: Sequence[Optional[Goal]], strict: bool = False) -> GoalHierarchy:
    """
    Group a flat list of goals into parent goals, sub-goals and orphans.

    Args:
        goals: Goals already scoped by the caller (one student, one session...).
            None entries are ignored.
        strict: Raise ParentNotFound instead of collecting goals whose
            parent_goal_id does not resolve within `goals`.

    Returns:
        A GoalHierarchy where:
        - sub_goals_by_parent maps every parent id that has children to its
          direct children, in input order (deeper levels appear under their
          own parent's id)
        - parent_goals are root goals with at least one child
        - orphan_goals are root goals with no children
        - unresolved_goals have a parent_goal_id outside the input
    """
    valid_goals = _valid(goals)
    goal_ids = {g.id for g in valid_goals}
    sub_goals_by_parent: Dict[str, List[Goal]] = {}
    unresolved_goals: List[Goal] = []

    # First pass: sub-goals at any level, grouped by parent
    for goal in valid_goals:
        if not goal.parent_goal_id:
            continue
        if goal.parent_goal_id in goal_ids:
            sub_goals_by_parent.setdefault(goal.parent_goal_id, []).append(goal)
        elif strict:
            raise ParentNotFound(goal.id, goal.parent_goal_id)
        else:
            unresolved_goals.append(goal)

    # Second pass: top-level goals split by whether they have children
    parent_goals: List[Goal] = []
    orphan_goals: List[Goal] = []
    for goal in valid_goals:
        if goal.parent_goal_id:
            continue
        if sub_goals_by_parent.get(goal.id):
            parent_goals.append(goal)
        else:
            orphan_goals.append(goal)

    if unresolved_goals:
        logger.debug(f"{len(unresolved_goals)} goal(s) reference a parent outside the current scope")

    return GoalHierarchy(
        parent_goals=parent_goals,
        sub_goals_by_parent=sub_goals_by_parent,
        orphan_goals=orphan_goals,
        unresolved_goals=unresolved_goals,
    )


def _ancestors(goal: Goal, all_goals: Sequence[Optional[Goal]]) -> List[Goal]:
    # Nearest parent first; stops at a root or a dangling reference
    by_id = _index(all_goals)
    chain: List[Goal] = []
    seen = [goal.id]
    current = goal
    while current.parent_goal_id:
        parent = by_id.get(current.parent_goal_id)
        if parent is None:
            break
        if parent.id in seen:
            raise CycleDetected(seen + [parent.id])
        seen.append(parent.id)
        chain.append(parent)
        current = parent
    return chain


def depth_of(goal: Goal, all_goals: Sequence[Optional[Goal]]) -> int:
    """0 for top-level goals, 1 for sub-goals, 2 for sub-sub-goals, etc."""
    return len(_ancestors(goal, all_goals))


def path_of(goal: Goal, all_goals: Sequence[Optional[Goal]]) -> List[str]:
    """Goal descriptions from the top-level ancestor down to `goal`."""
    ancestors = _ancestors(goal, all_goals)
    return [g.description for g in reversed(ancestors)] + [goal.description]


def format_path(goal: Goal, all_goals: Sequence[Optional[Goal]], separator: str = " > ") -> str:
    # e.g. "Articulation > R Blends > Initial Position"
    return separator.join(path_of(goal, all_goals))


def collect_subtree(goal_id: str, all_goals: Sequence[Optional[Goal]]) -> List[Goal]:
    """A goal followed by all of its descendants, parents before children."""
    by_id = _index(all_goals)
    root = by_id.get(goal_id)
    if root is None:
        return []

    children = organize_hierarchy(all_goals).sub_goals_by_parent
    result: List[Goal] = []
    visited = set()
    stack = [root]
    while stack:
        goal = stack.pop()
        if goal.id in visited:
            continue
        visited.add(goal.id)
        result.append(goal)
        # reversed so siblings come out in their original order
        stack.extend(reversed(children.get(goal.id, [])))
    return result


def _apply_replacements(text: str, replacements: Sequence[Tuple[str, str]]) -> str:
    for old, new in replacements:
        if old:
            text = text.replace(old, new)
    return text


def copy_subtree(
    root: Goal,
    all_goals: Sequence[Optional[Goal]],
    replacements: Sequence[Tuple[str, str]] = (),
    new_parent_goal_id: Optional[str] = None,
) -> Tuple[List[Goal], Dict[str, str]]:
    """
    Clone a goal and its descendants under fresh ids.

    Text replacements are applied to description, baseline and target.
    The copied root is attached to `new_parent_goal_id` (or becomes a
    top-level goal); every other copy points at its parent's copy.

    Returns:
        The new goals (parents before children) and a map of old id -> new id.
    """
    subtree = collect_subtree(root.id, all_goals) or [root]
    now = utc_now()
    id_map: Dict[str, str] = {}
    new_goals: List[Goal] = []

    for old_goal in subtree:
        id_map[old_goal.id] = new_id()
        if old_goal.id == root.id:
            parent_id = new_parent_goal_id
        else:
            parent_id = id_map.get(old_goal.parent_goal_id)

        new_goals.append(old_goal.model_copy(update={
            "id": id_map[old_goal.id],
            "parent_goal_id": parent_id,
            "description": _apply_replacements(old_goal.description, replacements),
            "baseline": _apply_replacements(old_goal.baseline, replacements),
            "target": _apply_replacements(old_goal.target, replacements),
            "date_created": now,
            "date_achieved": None,
        }))

    logger.info(f"Copied subtree of goal {root.id}: {len(new_goals)} goal(s)")
    return new_goals, id_map


def is_goal_achieved(goal: Goal, all_goals: Sequence[Optional[Goal]]) -> bool:
    if goal.status == "achieved":
        return True
    if goal.parent_goal_id:
        parent = _index(all_goals).get(goal.parent_goal_id)
        if parent is not None and parent.status == "achieved":
            return True
    return False
