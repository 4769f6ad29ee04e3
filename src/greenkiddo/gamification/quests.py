"""Quest evaluator: multi-step goals behind one-way unlock gates.

Same regenerate-then-reconcile flow as challenges. A quest is complete only
when every step is complete, and its reward is granted once via
``claim_quest``.
"""

from __future__ import annotations

import logging
from datetime import datetime

from greenkiddo.gamification.facts import ActivityFacts
from greenkiddo.gamification.points_service import apply_award, log_level_change
from greenkiddo.gamification.schemas import (
    GamificationRecord,
    Quest,
    QuestFlag,
    QuestRewards,
    QuestStep,
    QuestStepFlag,
)

logger = logging.getLogger(__name__)

STREAK_MASTER_UNLOCK = 7


def derive_quests(facts: ActivityFacts) -> list[Quest]:
    """Build the quest catalogue from live facts. Pure.

    ``unlocked`` here is only the live prerequisite fact; prerequisite quests
    and persisted gates are applied by ``reconcile_quests``.
    """
    started = facts.total_time_spent > 0
    streak = facts.current_streak

    catalogue = [
        Quest(
            id="first_steps",
            title="First Steps",
            description="Complete your first lesson",
            type="main",
            difficulty="easy",
            rewards=QuestRewards(points=25, xp=50),
            progress=0,
            target=1,
            unlocked=True,
            steps=[
                QuestStep(
                    id="step1", title="Start a lesson",
                    description="Open any lesson and start learning",
                    completed=started, order=1,
                ),
            ],
        ),
        Quest(
            id="streak_master",
            title="Streak Master",
            description="Build a 30-day learning streak",
            type="main",
            difficulty="hard",
            rewards=QuestRewards(points=200, xp=500, badge="streak_master"),
            progress=0,
            target=3,
            unlocked=streak >= STREAK_MASTER_UNLOCK,
            steps=[
                QuestStep(id="step1", title="7-day streak", description="Maintain a 7-day streak",
                          completed=streak >= 7, order=1),
                QuestStep(id="step2", title="14-day streak", description="Maintain a 14-day streak",
                          completed=streak >= 14, order=2),
                QuestStep(id="step3", title="30-day streak", description="Maintain a 30-day streak",
                          completed=streak >= 30, order=3),
            ],
        ),
        Quest(
            id="eco_scholar",
            title="Eco Scholar",
            description="Go from your first enrolment to three finished courses",
            type="side",
            difficulty="medium",
            rewards=QuestRewards(points=150, xp=300, badge="eco_scholar"),
            progress=0,
            target=3,
            unlocked=True,
            requirements=["first_steps"],
            steps=[
                QuestStep(id="step1", title="Enroll in a course", description="Join any course",
                          completed=facts.enrolled_count >= 1, order=1),
                QuestStep(id="step2", title="Finish a course", description="Complete one course",
                          completed=facts.completed_count >= 1, order=2),
                QuestStep(id="step3", title="Finish three courses", description="Complete three courses",
                          completed=facts.completed_count >= 3, order=3),
            ],
        ),
    ]

    for quest in catalogue:
        quest.progress = sum(1 for step in quest.steps if step.completed)
        quest.target = len(quest.steps)
    return catalogue


# Quests open to a user with no activity; their gate never needs a latch
_OPEN_BY_DEFAULT = frozenset(q.id for q in derive_quests(ActivityFacts()) if q.unlocked and not q.requirements)


def reconcile_quests(catalogue: list[Quest], persisted: list[QuestFlag]) -> list[Quest]:
    """Overlay persisted step, unlock and completion latches. Pure.

    Steps and unlock gates only ever move from False to True. A quest with
    prerequisite quests unlocks live only once those are completed.
    """
    flags = {flag.id: flag for flag in persisted}
    merged: list[Quest] = []

    for quest in catalogue:
        item = quest.model_copy(deep=True)
        flag = flags.get(item.id)
        step_flags = {s.id: s.completed for s in flag.steps} if flag else {}
        for step in item.steps:
            step.completed = step.completed or step_flags.get(step.id, False)
        item.steps.sort(key=lambda s: s.order)
        merged.append(item)

    completed_ids = {flag.id for flag in persisted if flag.completed}
    for item in merged:
        flag = flags.get(item.id)
        prerequisites_met = all(req in completed_ids for req in item.requirements)
        item.unlocked = bool(flag and flag.unlocked) or (item.unlocked and prerequisites_met)

        all_steps = bool(item.steps) and all(step.completed for step in item.steps)
        if flag is not None and flag.completed:
            item.completed = True
            item.completed_at = flag.completed_at
        else:
            item.completed = item.unlocked and all_steps
            item.completed_at = None

        item.progress = sum(1 for step in item.steps if step.completed)
        item.target = len(item.steps)

    return merged


def _flag_for(record: GamificationRecord, quest_id: str) -> QuestFlag:
    flag = next((f for f in record.quests if f.id == quest_id), None)
    if flag is None:
        flag = QuestFlag(id=quest_id)
        record.quests.append(flag)
    return flag


def is_latched(record: GamificationRecord, quest_id: str) -> bool:
    return any(flag.id == quest_id and flag.completed for flag in record.quests)


def latch_unlocks(record: GamificationRecord, quests: list[Quest]) -> bool:
    """Persist newly opened unlock gates onto the record. Returns True if any changed."""
    changed = False
    for quest in quests:
        if not quest.unlocked or quest.id in _OPEN_BY_DEFAULT:
            continue
        flag = next((f for f in record.quests if f.id == quest.id), None)
        if flag is None or not flag.unlocked:
            _flag_for(record, quest.id).unlocked = True
            changed = True
    return changed


def mark_step(record: GamificationRecord, quest: Quest, step_id: str) -> None:
    """Persist a step latch and mirror it onto the evaluated quest."""
    flag = _flag_for(record, quest.id)
    flag.unlocked = True
    existing = next((s for s in flag.steps if s.id == step_id), None)
    if existing is None:
        flag.steps.append(QuestStepFlag(id=step_id, completed=True))
    else:
        existing.completed = True

    for step in quest.steps:
        if step.id == step_id:
            step.completed = True
    quest.progress = sum(1 for step in quest.steps if step.completed)


def claim_quest(record: GamificationRecord, quest: Quest, now: datetime) -> bool:
    """Grant a fully stepped quest's reward once. Returns False if latched or unfinished."""
    if is_latched(record, quest.id):
        return False
    if not quest.steps or not all(step.completed for step in quest.steps):
        return False

    old_level = apply_award(record, "challenges", quest.rewards.points, quest.rewards.xp, now)

    flag = _flag_for(record, quest.id)
    flag.unlocked = True
    flag.completed = True
    flag.completed_at = now
    flag.steps = [QuestStepFlag(id=step.id, completed=True) for step in quest.steps]

    if quest.rewards.badge and quest.rewards.badge not in record.badges:
        record.badges.append(quest.rewards.badge)

    quest.completed = True
    quest.completed_at = now
    logger.info("User %s completed quest %s (+%d points)", record.user_id, quest.id, quest.rewards.points)
    log_level_change(record.user_id, old_level, record.level)
    return True
