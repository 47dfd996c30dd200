"""
Progression Updater

Applies one habit completion to the habit, the profile and the log:

1. Calculate the reward from the habit as it was before completing
2. Build a CompletionPlan: the log snapshot, the new streak counters and
   the new profile totals (level band, coins, free unlocks)
3. Write the plan: log first, then habit, then profile
4. Emit an ExpGainEvent and, if the level went up, a LevelUpEvent

Every write in a plan stores absolute values computed from the
pre-completion snapshot and the log insert is keyed by the log id, so
applying the same plan twice leaves storage unchanged the second time, and
a plan found already stored is not written or signalled again.

Storage without transactions may fail between writes. In that case the
first failed write raises PartialUpdateError carrying the plan; the caller
retries with apply_plan(error.plan). A failure on the very first write
(nothing applied) propagates unchanged.
"""

import inspect
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import uuid4
import logging

from betterme.db.store import Storage
from betterme.exceptions import PartialUpdateError, StorageError
from betterme.models import CharacterItem, Habit, HabitLog, Profile
from betterme.observability import metrics
from betterme.progression.levels import exp_band, is_unlock_level, level_from_exp
from betterme.progression.rewards import Reward, calculate_reward
from betterme.progression.shop import free_unlock_check, merge_unlocked

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpGainEvent:
    """Floating "+N EXP" feedback; the presentation layer positions it"""
    habit_id: str
    amount: int


@dataclass(frozen=True)
class LevelUpEvent:
    profile_id: str
    old_level: int
    new_level: int
    unlocked_items: Tuple[CharacterItem, ...] = ()


LevelUpListener = Callable[[LevelUpEvent], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class CompletionPlan:
    """Everything one completion will write"""
    log: HabitLog
    habit: Habit
    profile: Profile
    reward: Reward
    old_level: int
    unlocked_items: Tuple[CharacterItem, ...] = ()

    @property
    def new_level(self) -> int:
        return self.profile.character_level

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level

    def habit_fields(self) -> Dict[str, Any]:
        return {
            "streak": self.habit.streak,
            "best_streak": self.habit.best_streak,
        }

    def profile_fields(self) -> Dict[str, Any]:
        fields = {
            "total_exp": self.profile.total_exp,
            "current_exp": self.profile.current_exp,
            "exp_to_next": self.profile.exp_to_next,
            "character_level": self.profile.character_level,
            "coins": self.profile.coins,
        }
        if self.unlocked_items:
            fields["unlocked_items"] = list(self.profile.unlocked_items)
        return fields


@dataclass
class CompletionResult:
    """
    Outcome of applying a plan

    level_up is set only when this call emitted the level-up signal;
    replayed is True when the plan was already fully stored.
    """
    habit: Habit
    profile: Profile
    log: HabitLog
    reward: Reward
    exp_event: ExpGainEvent
    level_up: Optional[LevelUpEvent] = None
    replayed: bool = False


def unlock_levels_crossed(old_level: int, new_level: int) -> List[int]:
    """Unlock levels (6, 11, 16, ...) in (old_level, new_level]"""
    return [lvl for lvl in range(old_level + 1, new_level + 1) if is_unlock_level(lvl)]


def plan_completion(
    habit: Habit,
    profile: Profile,
    catalog: Iterable[CharacterItem] = (),
    now: Optional[datetime] = None,
    log_id: Optional[str] = None
) -> CompletionPlan:
    """
    Compute the new habit, profile and log for one completion

    Args:
        habit: Habit before this completion
        profile: Profile before this completion
        catalog: Items to consider for free unlocks
        now: Completion timestamp (defaults to now, UTC)
        log_id: Id for the new log (defaults to a fresh uuid4)

    Returns:
        CompletionPlan
    """
    if now is None:
        now = datetime.now(timezone.utc)

    reward = calculate_reward(habit)

    log = HabitLog(
        id=log_id or str(uuid4()),
        user_id=profile.id,
        habit_id=habit.id,
        completed_at=now,
        exp_earned=reward.base_exp,
        streak_bonus=reward.streak_bonus,
    )

    if habit.is_good:
        new_streak = habit.streak + 1
    else:
        new_streak = max(0, habit.streak - 1)
    new_habit = habit.model_copy(update={
        "streak": new_streak,
        "best_streak": max(new_streak, habit.best_streak),
    })

    old_level = profile.character_level
    new_total = profile.total_exp + reward.signed_total
    band = exp_band(new_total)

    unlocked: Tuple[CharacterItem, ...] = ()
    catalog = list(catalog)
    for level in unlock_levels_crossed(old_level, band.level):
        unlocked += tuple(free_unlock_check(level, catalog))

    profile_update: Dict[str, Any] = {
        "total_exp": new_total,
        "current_exp": band.current_exp,
        "exp_to_next": band.exp_to_next,
        "character_level": band.level,
        "coins": profile.coins + reward.coin_delta,
    }
    if unlocked:
        profile_update["unlocked_items"] = merge_unlocked(
            profile.unlocked_items, [item.id for item in unlocked]
        )

    return CompletionPlan(
        log=log,
        habit=new_habit,
        profile=profile.model_copy(update=profile_update),
        reward=reward,
        old_level=old_level,
        unlocked_items=unlocked,
    )


class ProgressionUpdater:
    """
    Applies habit completions through an injected Storage handle.

    Responsibilities:
    - Reward calculation and streak accounting
    - Level band recomputation and level-up detection
    - Free item unlocks on levels 6, 11, 16, ...
    - Ordered, idempotent writes with partial-failure reporting
    """

    def __init__(self, store: Storage, listeners: Optional[List[LevelUpListener]] = None):
        self.store = store
        self._listeners: List[LevelUpListener] = list(listeners or [])

    def add_level_up_listener(self, listener: LevelUpListener) -> None:
        self._listeners.append(listener)

    async def complete_habit(
        self,
        habit: Habit,
        profile: Profile,
        now: Optional[datetime] = None
    ) -> CompletionResult:
        """
        Complete `habit` once for `profile`

        Raises:
            StorageError: a read or the first write failed; nothing was written
            PartialUpdateError: some writes succeeded; retry with apply_plan(error.plan)
        """
        catalog: List[CharacterItem] = []
        reward = calculate_reward(habit)
        projected_level = level_from_exp(profile.total_exp + reward.signed_total)
        if unlock_levels_crossed(profile.character_level, projected_level):
            catalog = await self.store.list_items(coin_cost=0)

        plan = plan_completion(habit, profile, catalog=catalog, now=now)
        return await self.apply_plan(plan)

    async def apply_plan(self, plan: CompletionPlan) -> CompletionResult:
        """
        Write `plan` to storage; safe to call again with the same plan

        A plan that is already fully stored is not written again and emits
        no events or metrics.
        """
        if await self._already_applied(plan):
            logger.info(f"Completion {plan.log.id} of habit {plan.habit.id} already applied")
            return self._result(plan, replayed=True)

        if getattr(self.store, "supports_transactions", False):
            async with self.store.transaction():
                await self._write_log(plan)
                await self._write_habit(plan)
                await self._write_profile(plan)
        else:
            await self._apply_in_steps(plan)

        return await self._finish(plan)

    async def _apply_in_steps(self, plan: CompletionPlan) -> None:
        steps = [
            ("insert_log", self._write_log),
            ("update_habit", self._write_habit),
            ("update_profile", self._write_profile),
        ]
        completed: List[str] = []
        for name, write in steps:
            try:
                await write(plan)
            except StorageError as e:
                if not completed:
                    raise
                metrics.partial_updates_total.labels(failed_step=name).inc()
                raise PartialUpdateError(
                    f"Completion of habit {plan.habit.id} stopped at {name}",
                    plan=plan,
                    completed_steps=completed,
                    failed_step=name,
                    user_id=plan.profile.id,
                    operation="complete_habit",
                    cause=e,
                ) from e
            completed.append(name)

    async def _write_log(self, plan: CompletionPlan) -> None:
        await self.store.insert_habit_log(plan.log)

    async def _write_habit(self, plan: CompletionPlan) -> None:
        await self.store.update_habit(plan.habit.id, plan.habit_fields())

    async def _write_profile(self, plan: CompletionPlan) -> None:
        await self.store.update_profile(plan.profile.id, plan.profile_fields())

    async def _finish(self, plan: CompletionPlan) -> CompletionResult:
        habit_type = plan.habit.habit_type.value
        metrics.habit_completions_total.labels(habit_type=habit_type).inc()
        metrics.exp_awarded_total.labels(habit_type=habit_type).inc(abs(plan.reward.signed_total))

        logger.info(
            f"Habit {plan.habit.id} completed by {plan.profile.id}: "
            f"{plan.reward.signed_total:+d} EXP, streak {plan.habit.streak}, "
            f"total {plan.profile.total_exp} EXP, level {plan.new_level}"
        )

        level_up = None
        if plan.leveled_up:
            level_up = LevelUpEvent(
                profile_id=plan.profile.id,
                old_level=plan.old_level,
                new_level=plan.new_level,
                unlocked_items=plan.unlocked_items,
            )
            metrics.level_ups_total.inc()
            logger.info(f"Profile {plan.profile.id} leveled up from {plan.old_level} to {plan.new_level}!")
            if plan.unlocked_items:
                logger.info(
                    f"Unlocked {len(plan.unlocked_items)} free items for {plan.profile.id}: "
                    f"{', '.join(item.id for item in plan.unlocked_items)}"
                )
            await self._notify(level_up)

        return self._result(plan, level_up=level_up)

    @staticmethod
    def _result(
        plan: CompletionPlan,
        level_up: Optional[LevelUpEvent] = None,
        replayed: bool = False
    ) -> CompletionResult:
        return CompletionResult(
            habit=plan.habit,
            profile=plan.profile,
            log=plan.log,
            reward=plan.reward,
            exp_event=ExpGainEvent(habit_id=plan.habit.id, amount=plan.reward.signed_total),
            level_up=level_up,
            replayed=replayed,
        )

    async def _already_applied(self, plan: CompletionPlan) -> bool:
        # The profile is written last: a stored log plus a profile matching the plan means every write landed
        if await self.store.get_habit_log(plan.log.id) is None:
            return False
        stored = await self.store.get_profile(plan.profile.id)
        return all(getattr(stored, name) == value for name, value in plan.profile_fields().items())

    async def _notify(self, event: LevelUpEvent) -> None:
        for listener in self._listeners:
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # The completion is already stored; a listener cannot undo it
                logger.error(f"Level-up listener {listener!r} failed: {e}", exc_info=True)
