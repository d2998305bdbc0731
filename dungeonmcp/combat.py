"""Dice-driven fights between the player and the monsters of a room."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Protocol

from dungeonmcp.entities import MONSTER_KINDS, Creature
from dungeonmcp.game import GameState

_MONSTER_LABELS = {"skeleton": "💀 Skeleton", "goblin": "👺 Goblin", "vampire": "🧛 Vampire"}


class _RandInt(Protocol):
    def randint(self, a: int, b: int) -> int: ...


class GameOver(Exception):
    """Raised when the player's health drops to zero or below."""

    def __init__(self, player_health: int) -> None:
        super().__init__("You have been defeated... The dungeon claims another soul.")
        self.player_health = player_health


@dataclass
class CombatRound:
    """What happened in one exchange of blows."""

    monster_kind: str
    player_roll: int
    player_strength: int
    monster_roll: int
    monster_strength: int
    damage: int
    target: Optional[str]
    player_health: int
    monster_health: int
    monster_defeated: bool = False

    @property
    def player_total(self) -> int:
        return self.player_roll + self.player_strength

    @property
    def monster_total(self) -> int:
        return self.monster_roll + self.monster_strength

    def describe(self) -> str:
        """Human-readable account of the round."""
        name = _MONSTER_LABELS.get(self.monster_kind, self.monster_kind)
        lines = [
            "-" * 60,
            f"🎲 Your roll: 3d6({self.player_roll}) + {self.player_strength}💪 = "
            f"{self.player_total}",
            f"🎲 {name} roll: 3d6({self.monster_roll}) + {self.monster_strength}💪 = "
            f"{self.monster_total}",
            "-" * 60,
        ]
        if self.target == "monster":
            lines.append(
                f"💥 You hit! {name} takes {self.damage} damage. "
                f"({self.monster_health} ❤️ remaining)"
            )
        elif self.target == "player":
            lines.append(
                f"💔 {name} hits you! You take {self.damage} damage. "
                f"({self.player_health} ❤️ remaining)"
            )
        else:
            lines.append("⚔️  The attacks clash! No one takes damage this round.")
        if self.monster_defeated:
            lines += ["=" * 60, f"🎉 VICTORY! You defeated the {name}!", "=" * 60]
        else:
            lines += [
                "-" * 60,
                f"Status: You [{self.player_health} ❤️] vs {name} "
                f"[{self.monster_health} ❤️]",
            ]
        return "\n".join(lines)


def roll_dice(count: int, faces: int, rng: Optional[_RandInt] = None) -> int:
    """Roll ``count`` dice with ``faces`` faces and return the sum."""
    if count < 0:
        raise ValueError("dice count must not be negative")
    if faces < 1:
        raise ValueError("dice must have at least one face")
    source = rng if rng is not None else random
    return sum(source.randint(1, faces) for _ in range(count))


def start_combat(state: GameState) -> Optional[Creature]:
    """Engage the first monster of the current room; None if there is none."""
    room = state.current_room()
    if room is None:
        return None
    seen: set[str] = set()
    for char in room.chars:
        if char.kind not in MONSTER_KINDS or char.object_id in seen:
            continue
        seen.add(char.object_id)
        monster = state.monsters.get(char.object_id)
        if monster is not None:
            state.in_combat = True
            state.current_enemy = monster
            return monster
    return None


def _require_enemy(state: GameState) -> Creature:
    enemy = state.current_enemy
    if not state.in_combat or enemy is None:
        raise ValueError("not in combat")
    if enemy.kind not in MONSTER_KINDS:
        state.in_combat = False
        state.current_enemy = None
        raise ValueError("invalid enemy")
    if state.player is None:
        raise ValueError("no player in the game")
    return enemy


def combat_round(state: GameState, rng: Optional[_RandInt] = None) -> CombatRound:
    """Play one round: both sides roll 3d6 plus strength, the higher hits.

    Raises ValueError when not in combat and GameOver when the player dies.
    """
    enemy = _require_enemy(state)
    player = state.player
    assert player is not None

    player_roll = roll_dice(3, 6, rng)
    monster_roll = roll_dice(3, 6, rng)
    player_total = player_roll + player.strength
    monster_total = monster_roll + enemy.strength

    damage = 0
    target: Optional[str] = None
    defeated = False
    if player_total > monster_total:
        damage = (player_total - monster_total + 1) // 2
        target = "monster"
        enemy.health -= damage
        if enemy.health <= 0:
            defeated = True
            state.monsters.pop(enemy.id, None)
            state.dungeon.remove_char_object(player.room_id, enemy.id)
            state.in_combat = False
            state.current_enemy = None
    elif monster_total > player_total:
        damage = (monster_total - player_total + 1) // 2
        target = "player"
        player.health -= damage

    result = CombatRound(
        monster_kind=enemy.kind,
        player_roll=player_roll,
        player_strength=player.strength,
        monster_roll=monster_roll,
        monster_strength=enemy.strength,
        damage=damage,
        target=target,
        player_health=player.health,
        monster_health=enemy.health,
        monster_defeated=defeated,
    )
    if player.health <= 0:
        raise GameOver(player.health)
    return result


def flee(state: GameState) -> bool:
    """Leave the current fight; False if there was none."""
    if not state.in_combat:
        return False
    state.in_combat = False
    state.current_enemy = None
    return True


def counter_attack(state: GameState, rng: Optional[_RandInt] = None) -> Optional[int]:
    """Let the enemy strike while the player is busy; returns the damage dealt.

    Returns None outside combat and raises GameOver when the player dies.
    """
    enemy = state.current_enemy
    player = state.player
    if not state.in_combat or enemy is None or player is None:
        return None
    if enemy.kind not in MONSTER_KINDS:
        return None
    monster_total = roll_dice(3, 6, rng) + enemy.strength
    damage = max(1, (monster_total + 1) // 4)
    player.health -= damage
    if player.health <= 0:
        raise GameOver(player.health)
    return damage