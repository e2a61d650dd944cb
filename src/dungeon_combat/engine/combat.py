"""Combat engine: the encounter state machine.

The engine owns the roster, the formation, the turn order and the combat
log of one encounter. Hosts drive it with two calls:

1. :meth:`CombatEngine.get_current_actor` to learn whose turn it is.
2. :meth:`CombatEngine.process_action` to submit that combatant's action.

Enemy turns can be played out with :meth:`CombatEngine.run_ai_turns`.
Everything random goes through the injected
:class:`~dungeon_combat.engine.dice.RandomSource`, so an encounter
replays identically from the same draws.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from dungeon_combat.core.config import Settings, get_settings
from dungeon_combat.core.constants import TREASURE_GOLD_DICE
from dungeon_combat.core.exceptions import (
    ActionRejectedError,
    EncounterAlreadyResolvedError,
    InvalidGameStateError,
    OutOfTurnActionError,
)
from dungeon_combat.core.logging import bind_context, clear_context, encounter_context, get_logger
from dungeon_combat.engine.adapter import CombatantAdapter
from dungeon_combat.engine.dice import DiceRoller
from dungeon_combat.engine.events import EventBus
from dungeon_combat.engine.formation import Formation
from dungeon_combat.engine.initiative import InitiativeScheduler
from dungeon_combat.engine.monster_ai import MonsterAI
from dungeon_combat.engine.resolver import ActionResolver
from dungeon_combat.models.actions import (
    ActionOutcome,
    ActionResult,
    ChangeKind,
    CombatLogEntry,
    LogLine,
    TurnOrderEntry,
)
from dungeon_combat.models.enums import (
    CombatStatus,
    Difficulty,
    EncounterPhase,
    LogKind,
    Side,
    TreasureType,
    TurnPhase,
)
from dungeon_combat.models.events import (
    ActionProcessedEvent,
    CharacterUpdatedEvent,
    CombatStartedEvent,
    CombatEndedEvent,
    EncounterInfo,
    PartyDefeatedEvent,
    Rewards,
    WaveStartedEvent,
)


if TYPE_CHECKING:
    from dungeon_combat.engine.dice import RandomSource
    from dungeon_combat.engine.providers import (
        EncounterDescriptor,
        EquipmentProvider,
        InventoryProvider,
        LootProvider,
        MonsterProvider,
        PartyProvider,
        SpellProvider,
    )
    from dungeon_combat.models.actions import ActionModel
    from dungeon_combat.models.combatant import CharacterRecord, Combatant, MonsterRecord

logger = get_logger(__name__)

Clock = Callable[[], datetime]

_DIFFICULTY_THRESHOLDS: tuple[tuple[float, Difficulty], ...] = (
    (0.3, Difficulty.TRIVIAL),
    (0.5, Difficulty.EASY),
    (0.8, Difficulty.MEDIUM),
    (1.2, Difficulty.HARD),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CombatEngine:
    """Run one multi-wave encounter between the party and enemy waves.

    Encounter phases move ``not_started -> active -> (wave_transition ->
    active)* -> victory | defeat``. Within a turn the engine passes through
    ``initiative``, ``action_selection``, ``resolution`` and ``cleanup``.

    Attributes:
        party: Party provider; source of members and sink for write-back.
        rng: Random source shared by every rule.
        events: Event bus receiving the engine's events.
        settings: Engine settings.

    Example:
        >>> engine = CombatEngine(InMemoryParty(records), DiceRoller(seed=7))
        >>> engine.start_combat(enemy_waves=[[kobold, kobold]])
        >>> while engine.phase is EncounterPhase.ACTIVE:
        ...     actor = engine.get_current_actor()
        ...     if actor.is_player:
        ...         engine.process_action(choose(actor))
        ...     else:
        ...         engine.run_ai_turns()
    """

    def __init__(
        self,
        party: PartyProvider,
        rng: RandomSource | None = None,
        *,
        monsters: MonsterProvider | None = None,
        equipment: EquipmentProvider | None = None,
        spells: SpellProvider | None = None,
        inventory: InventoryProvider | None = None,
        loot: LootProvider | None = None,
        events: EventBus | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Wire the engine to its collaborators.

        Args:
            party: Party provider.
            rng: Random source; a fresh unseeded :class:`DiceRoller` if omitted.
            monsters: Monster provider, needed to start from a descriptor.
            equipment: Equipment provider for party bonuses.
            spells: Spell provider.
            inventory: Inventory provider for items and spoils.
            loot: Loot provider for item drops.
            events: Event bus; a private one is created if omitted.
            settings: Engine settings; the cached settings if omitted.
            clock: Timestamp source for log entries.
        """
        self.party = party
        self.rng = rng or DiceRoller()
        self.monsters = monsters
        self.inventory = inventory
        self.loot = loot
        self.events = events or EventBus()
        self.settings = settings or get_settings()
        self._clock = clock or _utc_now

        combat = self.settings.combat
        self._adapter = CombatantAdapter(equipment)
        self._formation = Formation(combat)
        self._scheduler = InitiativeScheduler(self.rng)
        self._resolver = ActionResolver(
            self.rng,
            self._formation,
            spells=spells,
            inventory=inventory,
            settings=combat,
        )
        self._ai = MonsterAI(self._formation, self.rng, self.settings.ai)

        self._phase = EncounterPhase.NOT_STARTED
        self._turn_phase = TurnPhase.INITIATIVE
        self._name = ""
        self._party_members: list[Combatant] = []
        self._waves: list[list[Combatant]] = []
        self._wave_index = 0
        self._roster: dict[str, Combatant] = {}
        self._defeated_enemies: list[Combatant] = []
        self._disconnected: list[str] = []
        self._entries: list[CombatLogEntry] = []
        self._surprise: Side | None = None
        self._pending_events: list[object] = []
        self._last_rewards: Rewards | None = None

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def phase(self) -> EncounterPhase:
        return self._phase

    @property
    def turn_phase(self) -> TurnPhase:
        return self._turn_phase

    @property
    def formation(self) -> Formation:
        return self._formation

    @property
    def combat_log(self) -> list[CombatLogEntry]:
        """Copy of the full combat log."""
        return list(self._entries)

    @property
    def turn_order(self) -> list[TurnOrderEntry]:
        return self._scheduler.order

    @property
    def current_round(self) -> int:
        return self._scheduler.current_round

    @property
    def surprise_round(self) -> Side | None:
        return self._surprise

    @property
    def last_rewards(self) -> Rewards | None:
        return self._last_rewards

    @property
    def disconnected_characters(self) -> list[str]:
        """IDs of party members who fled the encounter."""
        return list(self._disconnected)

    def get_combatant(self, combatant_id: str) -> Combatant:
        """Copy of a combatant of the party or the current wave.

        Raises:
            InvalidGameStateError: If no such combatant takes part.
        """
        combatant = self._roster.get(combatant_id)
        if combatant is None:
            raise InvalidGameStateError(
                f"Unknown combatant {combatant_id}",
                current_state=self._phase.value,
            )
        return combatant.model_copy(deep=True)

    def combatants(self) -> list[Combatant]:
        """Copies of the party followed by the current wave."""
        return [combatant.model_copy(deep=True) for combatant in self._roster.values()]

    def encounter_info(self) -> EncounterInfo:
        return EncounterInfo(
            name=self._name,
            current_wave=self._wave_index + 1,
            total_waves=max(1, len(self._waves)),
            enemies=[enemy.id for enemy in self._current_wave() if enemy.is_ok],
        )

    # =========================================================================
    # Encounter Lifecycle
    # =========================================================================

    def start_combat(
        self,
        party: list[CharacterRecord] | None = None,
        enemy_waves: list[list[MonsterRecord]] | None = None,
        *,
        encounter: EncounterDescriptor | None = None,
        surprise: Side | None = None,
        name: str | None = None,
    ) -> CombatStartedEvent:
        """Begin an encounter.

        Args:
            party: Party members; the provider's living members if omitted.
            enemy_waves: Monster templates per wave.
            encounter: Descriptor resolved through the Monster provider,
                used when ``enemy_waves`` is omitted.
            surprise: Side that acts alone in a surprise round, if any.
            name: Display name of the encounter.

        Returns:
            The ``combat-started`` event that was emitted.

        Raises:
            InvalidGameStateError: If an encounter is already running, the
                party or a wave is empty, or combatant IDs collide.
        """
        if self._phase in (EncounterPhase.ACTIVE, EncounterPhase.WAVE_TRANSITION):
            raise InvalidGameStateError(
                "An encounter is already in progress",
                current_state=self._phase.value,
                expected_states=[EncounterPhase.NOT_STARTED.value, EncounterPhase.VICTORY.value,
                                 EncounterPhase.DEFEAT.value],
            )

        records = [record for record in (party if party is not None else self.party.members()) if record.is_alive]
        if not records:
            raise InvalidGameStateError("Cannot start combat without a living party member")

        waves = self._resolve_waves(enemy_waves, encounter)
        self._reset()
        self._name = name or (encounter.name if encounter else "Encounter")
        self._party_members = [self._adapter.from_character(record) for record in records]
        self._waves = [
            self._adapter.wave_from_monsters(wave, wave_index=index) for index, wave in enumerate(waves)
        ]
        self._check_unique_ids()

        bind_context(encounter=self._name)
        self._formation.setup_from_party(self._party_members)
        self._load_wave(0)
        self._phase = EncounterPhase.ACTIVE

        total_waves = len(self._waves)
        self._log("⚔️ Combat begins!", LogKind.SYSTEM, "⚔️")
        if total_waves > 1:
            self._log(f"🌊 Wave 1 of {total_waves}", LogKind.WAVE, "🌊")
        for enemy in self._current_wave():
            self._log(f"👹 {enemy.name} appears!", LogKind.COMBAT, "👹")

        if surprise is None and self.settings.combat.auto_surprise:
            surprise = self._roll_surprise()
        self._surprise = surprise
        if surprise is Side.PLAYER:
            self._log("🎯 The party surprises the enemies!", LogKind.SURPRISE, "🎯")
        elif surprise is Side.ENEMY:
            self._log("😱 The party is surprised!", LogKind.SURPRISE, "😱")

        self._roll_initiative(surprise_side=surprise)
        first = self._settle_turn()
        difficulty = self.difficulty()
        logger.info(
            "Combat started",
            party=[member.id for member in self._party_members],
            waves=total_waves,
            difficulty=difficulty.value,
            surprise=surprise,
        )

        event = CombatStartedEvent(
            encounter=self.encounter_info(),
            formation=self._formation.snapshot(),
            difficulty=difficulty,
            first_actor=first.id if first else None,
            surprise_round=surprise,
        )
        self.events.emit(event)
        return event

    def difficulty(self) -> Difficulty:
        """Rate the encounter by total enemy experience against party strength."""
        members = self._party_members
        if not members:
            return Difficulty.TRIVIAL
        experience = sum(self._experience_of(enemy) for wave in self._waves for enemy in wave)
        average_level = sum(member.level for member in members) / len(members)
        ratio = experience / (average_level * 100 * len(members))
        for threshold, rating in _DIFFICULTY_THRESHOLDS:
            if ratio < threshold:
                return rating
        return Difficulty.DEADLY

    # =========================================================================
    # Turns
    # =========================================================================

    def get_current_actor(self) -> Combatant | None:
        """Combatant whose turn it is, or None once the encounter is over.

        Entries for combatants that are no longer ok are dropped from the
        turn order on the way.
        """
        if self._phase is not EncounterPhase.ACTIVE:
            return None
        while (entry := self._scheduler.current()) is not None:
            combatant = self._roster.get(entry.combatant_id)
            if combatant is not None and combatant.is_ok:
                return combatant
            self._scheduler.remove(entry.combatant_id)
        return None

    def process_action(self, action: ActionModel) -> ActionOutcome:
        """Resolve the current actor's action and advance the encounter.

        Rejected actions leave every piece of state untouched.

        Args:
            action: Action submitted for the current actor.

        Returns:
            The outcome, including the new log entries and the next actor.

        Raises:
            InvalidGameStateError: If combat has not started.
        """
        if self._phase is EncounterPhase.NOT_STARTED:
            raise InvalidGameStateError(
                "Combat has not started",
                current_state=self._phase.value,
                expected_states=[EncounterPhase.ACTIVE.value],
            )

        actor = self.get_current_actor()
        try:
            if self._phase.is_resolved:
                raise EncounterAlreadyResolvedError(
                    f"The encounter already ended in {self._phase.value}",
                    combatant_id=action.actor_id,
                )
            if actor is None or action.actor_id != actor.id:
                raise OutOfTurnActionError(
                    f"It is not {action.actor_id}'s turn",
                    combatant_id=action.actor_id,
                    round_number=self._scheduler.current_round,
                    details={"current_actor": actor.id if actor else None},
                )
            self._turn_phase = TurnPhase.RESOLUTION
            with encounter_context(wave=self._wave_index + 1, round=self._scheduler.current_round):
                result = self._resolver.resolve(action, actor, self._roster)
        except ActionRejectedError as exc:
            self._turn_phase = TurnPhase.ACTION_SELECTION
            logger.warning("Action rejected", actor=action.actor_id, rejection=exc.kind.value, reason=exc.message)
            return ActionOutcome(
                accepted=False,
                rejection=exc.kind,
                reason=exc.message,
                next_actor_id=actor.id if actor else None,
                phase=self._phase,
            )

        log_start = len(self._entries)
        self._turn_phase = TurnPhase.CLEANUP
        touched = self._apply_result(result)
        if result.counter_attack is not None:
            for combatant_id in self._apply_result(result.counter_attack):
                self._touch(touched, combatant_id)

        turn_reset = self._check_end_conditions()
        next_actor: Combatant | None = None
        if self._phase is EncounterPhase.ACTIVE:
            next_actor = self._settle_turn() if turn_reset else self._next_turn()

        tail = self._entries[log_start:]
        self.events.emit(
            ActionProcessedEvent(
                action=action,
                result=result,
                combat_log=tail,
                next_actor=next_actor.id if next_actor else None,
            )
        )
        for combatant_id in touched:
            member = self._roster.get(combatant_id)
            if member is not None and member.is_player:
                self.events.emit(CharacterUpdatedEvent(character=member.model_copy(deep=True)))
        self._flush_events()

        return ActionOutcome(
            accepted=True,
            result=result,
            log_tail=tail,
            next_actor_id=next_actor.id if next_actor else None,
            phase=self._phase,
        )

    def run_ai_turns(self, max_turns: int | None = None) -> list[ActionOutcome]:
        """Play enemy turns until a party member is up or combat ends.

        Args:
            max_turns: Optional cap on the number of turns played.

        Returns:
            Outcomes of the enemy actions, in order.
        """
        outcomes: list[ActionOutcome] = []
        while max_turns is None or len(outcomes) < max_turns:
            actor = self.get_current_actor()
            if actor is None or actor.side is not Side.ENEMY:
                break
            outcomes.append(self.process_action(self._ai.choose_action(actor)))
        return outcomes

    # =========================================================================
    # Internals: setup
    # =========================================================================

    def _reset(self) -> None:
        self._turn_phase = TurnPhase.INITIATIVE
        self._wave_index = 0
        self._roster = {}
        self._defeated_enemies = []
        self._disconnected = []
        self._entries = []
        self._surprise = None
        self._pending_events = []
        self._last_rewards = None

    def _resolve_waves(
        self,
        enemy_waves: list[list[MonsterRecord]] | None,
        encounter: EncounterDescriptor | None,
    ) -> list[list[MonsterRecord]]:
        if enemy_waves is None and encounter is not None:
            if self.monsters is None:
                raise InvalidGameStateError("An encounter descriptor needs a monster provider")
            enemy_waves = self.monsters.build_waves(encounter)
        if not enemy_waves:
            raise InvalidGameStateError("Cannot start combat without enemy waves")
        for index, wave in enumerate(enemy_waves):
            if not wave:
                raise InvalidGameStateError(
                    f"Enemy wave {index + 1} is empty",
                    details={"wave": index + 1},
                )
        return enemy_waves

    def _check_unique_ids(self) -> None:
        seen: set[str] = set()
        everyone = [*self._party_members, *(enemy for wave in self._waves for enemy in wave)]
        for combatant in everyone:
            if combatant.id in seen:
                raise InvalidGameStateError(
                    f"Duplicate combatant id {combatant.id}",
                    details={"combatant_id": combatant.id},
                )
            seen.add(combatant.id)

    def _current_wave(self) -> list[Combatant]:
        if not self._waves:
            return []
        return self._waves[self._wave_index]

    def _load_wave(self, index: int) -> None:
        self._wave_index = index
        wave = self._waves[index]
        self._roster = {member.id: member for member in self._party_members}
        self._roster.update({enemy.id: enemy for enemy in wave})
        self._formation.set_enemy_wave(wave)

    def _roll_surprise(self) -> Side | None:
        """Faster side may surprise the other: ``|agility gap| * 2`` percent."""
        party = [member for member in self._party_members if member.is_ok]
        enemies = self._current_wave()
        party_agility = sum(member.attributes.agility for member in party) / len(party)
        enemy_agility = sum(enemy.attributes.agility for enemy in enemies) / len(enemies)
        gap = party_agility - enemy_agility
        if gap == 0 or not self.rng.percent(abs(gap) * 2):
            return None
        return Side.PLAYER if gap > 0 else Side.ENEMY

    def _roll_initiative(self, *, surprise_side: Side | None = None) -> None:
        self._turn_phase = TurnPhase.INITIATIVE
        participants = [combatant for combatant in self._roster.values() if combatant.is_ok]
        if surprise_side is not None:
            participants = [combatant for combatant in participants if combatant.side is surprise_side]
            order = self._scheduler.roll(participants, first_round=0)
        else:
            order = self._scheduler.roll(participants)
        for entry in order:
            self._log(f"{entry.name} rolls initiative {entry.initiative_score}", LogKind.SYSTEM)

    # =========================================================================
    # Internals: turn flow
    # =========================================================================

    def _next_turn(self) -> Combatant | None:
        round_before = self._scheduler.current_round
        self._scheduler.advance()
        if self._scheduler.current_round != round_before:
            self._on_new_round()
        return self._settle_turn()

    def _on_new_round(self) -> bool:
        """Handle the end of a round; True if the turn order was rebuilt."""
        if self._surprise is not None and self._scheduler.current_round == 1:
            self._surprise = None
            self._log("The surprise round is over", LogKind.SURPRISE)
            self._roll_initiative()
            return True
        return False

    def _settle_turn(self) -> Combatant | None:
        """Move the pointer to a combatant able to act and begin its turn.

        Entries for fallen or fled combatants are removed. Combatants under
        a control effect lose the turn and count it down.
        """
        while True:
            if self._scheduler.current_round > self.settings.combat.max_rounds_per_wave:
                self._end_in_stalemate()
                return None
            entry = self._scheduler.current()
            if entry is None:
                return None
            combatant = self._roster.get(entry.combatant_id)
            round_before = self._scheduler.current_round
            if combatant is None or not combatant.is_ok:
                self._scheduler.remove(entry.combatant_id)
            elif combatant.turns_disabled > 0:
                combatant.turns_disabled -= 1
                self._log(f"💤 {combatant.name} cannot act!", LogKind.STATUS, "💤")
                self._scheduler.advance()
            else:
                combatant.is_defending = False
                self._turn_phase = TurnPhase.ACTION_SELECTION
                return combatant
            if self._scheduler.current_round != round_before:
                self._on_new_round()

    # =========================================================================
    # Internals: applying results
    # =========================================================================

    def _apply_result(self, result: ActionResult) -> list[str]:
        """Append the result's log lines and apply its state changes.

        Returns:
            IDs of combatants whose persistent state changed.
        """
        for line in result.lines:
            self._log_line(line)

        touched: list[str] = []
        for change in result.changes:
            target = self._roster[change.combatant_id]
            if change.kind is ChangeKind.DAMAGE:
                target.take_damage(change.amount)
                self._touch(touched, target.id)
                if not target.is_ok and target.side is Side.ENEMY:
                    self._defeated_enemies.append(target)
            elif change.kind is ChangeKind.HEAL:
                target.heal(change.amount)
                self._touch(touched, target.id)
            elif change.kind is ChangeKind.SET_DEFENDING:
                target.is_defending = True
            elif change.kind is ChangeKind.CLEAR_DEFENDING:
                target.is_defending = False
            elif change.kind is ChangeKind.CONSUME_SPELL and change.key:
                target.consume_spell(change.key)
                self._touch(touched, target.id)
            elif change.kind is ChangeKind.CONSUME_ITEM and change.key and self.inventory is not None:
                self.inventory.consume(change.key)
            elif change.kind is ChangeKind.FLEE:
                target.status = CombatStatus.FLED
                self._disconnected.append(target.id)
                self._touch(touched, target.id)
            elif change.kind is ChangeKind.BUFF:
                target.attack_modifier += change.amount
            elif change.kind is ChangeKind.PROTECT:
                target.ac_modifier += change.amount
            elif change.kind is ChangeKind.DISABLE:
                target.turns_disabled = max(target.turns_disabled, change.amount)
        return touched

    @staticmethod
    def _touch(touched: list[str], combatant_id: str) -> None:
        if combatant_id not in touched:
            touched.append(combatant_id)

    def _check_end_conditions(self) -> bool:
        """Advance waves or end the encounter.

        Returns:
            True if a new wave started and the turn order was rebuilt.
        """
        if all(not enemy.is_ok for enemy in self._current_wave()):
            if self._wave_index + 1 < len(self._waves):
                self._start_next_wave()
                return True
            self._end_in_victory()
            return False
        if all(not member.is_ok for member in self._party_members):
            self._end_in_defeat()
        return False

    def _start_next_wave(self) -> None:
        self._phase = EncounterPhase.WAVE_TRANSITION
        cleared = self._wave_index + 1
        self._log(f"✅ Wave {cleared} cleared!", LogKind.WAVE, "✅")
        self._load_wave(self._wave_index + 1)
        for member in self._party_members:
            member.is_defending = False

        total = len(self._waves)
        self._log(f"🌊 Wave {self._wave_index + 1} of {total}", LogKind.WAVE, "🌊")
        for enemy in self._current_wave():
            self._log(f"👹 {enemy.name} appears!", LogKind.COMBAT, "👹")
        self._roll_initiative()
        self._phase = EncounterPhase.ACTIVE
        logger.info("Wave started", wave=self._wave_index + 1, total_waves=total)
        self._pending_events.append(WaveStartedEvent(encounter=self.encounter_info()))

    def _end_in_victory(self) -> None:
        rewards = self._roll_rewards()
        if self.inventory is not None and (rewards.gold or rewards.items):
            self.inventory.deposit(gold=rewards.gold, items=list(rewards.items))
        self._write_back()
        self._phase = EncounterPhase.VICTORY
        self._last_rewards = rewards
        self._log("🎉 Victory! All enemies have been defeated!", LogKind.VICTORY, "🎉")
        self._log(
            f"🏆 The party earns {rewards.experience} experience and {rewards.gold} gold",
            LogKind.VICTORY,
            "🏆",
        )
        logger.info("Combat won", experience=rewards.experience, gold=rewards.gold, items=rewards.items)
        self._pending_events.append(
            CombatEndedEvent(
                rewards=rewards,
                casualties=self._casualties(),
                disconnected_characters=list(self._disconnected),
            )
        )
        clear_context()

    def _end_in_defeat(self, *, total_defeat: bool | None = None) -> None:
        self._write_back()
        self._phase = EncounterPhase.DEFEAT
        if total_defeat is None:
            total_defeat = not self._disconnected
        if self._disconnected:
            self._log("🏃 The rest of the party has escaped", LogKind.DEFEAT, "🏃")
        self._log("💔 The party has been defeated...", LogKind.DEFEAT, "💔")
        logger.info("Combat lost", casualties=self._casualties(), fled=self._disconnected)
        self._pending_events.append(
            PartyDefeatedEvent(
                casualties=self._casualties(),
                disconnected_characters=list(self._disconnected),
                total_defeat=total_defeat,
            )
        )
        clear_context()

    def _end_in_stalemate(self) -> None:
        logger.warning("Wave round limit reached", rounds=self.settings.combat.max_rounds_per_wave)
        self._log("The battle drags on with no end in sight", LogKind.SYSTEM)
        self._end_in_defeat(total_defeat=False)

    def _roll_rewards(self) -> Rewards:
        experience = 0
        gold = 0
        items: list[str] = []
        for enemy in self._defeated_enemies:
            experience += self._experience_of(enemy)
            if enemy.treasure_type is TreasureType.NONE:
                continue
            gold += self.rng.roll(TREASURE_GOLD_DICE[enemy.treasure_type.value])
            if self.loot is not None:
                drop = self.loot.roll_drop(enemy.treasure_type, enemy.level, self.rng)
                if drop is not None:
                    items.append(drop)
        return Rewards(experience=experience, gold=gold, items=items)

    def _experience_of(self, enemy: Combatant) -> int:
        if enemy.experience_value is None:
            return self.settings.combat.default_experience
        return enemy.experience_value

    def _casualties(self) -> list[str]:
        return [member.id for member in self._party_members if member.status is CombatStatus.UNCONSCIOUS]

    def _write_back(self) -> None:
        for member in self._party_members:
            # Fleeing only lasts for the encounter.
            status = CombatStatus.OK if member.status is CombatStatus.FLED else member.status
            self.party.write_back(member.id, current_hp=member.current_hp, status=status.value)
        for character_id in self._disconnected:
            self.party.return_to_town(character_id)

    def _flush_events(self) -> None:
        pending, self._pending_events = self._pending_events, []
        for event in pending:
            self.events.emit(event)

    # =========================================================================
    # Internals: log
    # =========================================================================

    def _log(self, message: str, kind: LogKind = LogKind.COMBAT, icon: str = "") -> None:
        self._log_line(LogLine(message=message, kind=kind, icon=icon))

    def _log_line(self, line: LogLine) -> None:
        self._entries.append(
            CombatLogEntry(
                sequence=len(self._entries),
                round=self._scheduler.current_round,
                wave=self._wave_index + 1,
                message=line.message,
                kind=line.kind,
                icon=line.icon,
                timestamp=self._clock(),
            )
        )


__all__ = [
    "CombatEngine",
]
