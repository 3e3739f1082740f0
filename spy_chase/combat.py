"""
Encounter Resolver
==================
Turns this tick's overlaps into damage, score and push-back.

Runs once per tick after every actor has moved. Each rule checks that
both participants are still alive before doing anything; an entity
destroyed earlier in the pass is skipped by every later rule, so nothing
is hit twice in the same tick.

Rules:
    player shots   vs vehicles, helicopters, boss   bullet 1, missile 3
    player         vs vehicles                      ram (lateral) or crash
    vehicle        vs vehicle                       5 px separation
    oil slicks     vs vehicles                      spin-out, then 1 damage
    hostile shots  vs player                        shot damage
    boss body      vs player                        boss damage
    hazards / power-ups vs player
"""

from typing import List, Optional

from loguru import logger

from .components import (
    Position, Velocity, CollisionBox, Health, Projectile, BossState,
    OilSlick, SpinOut, Vehicle
)
from .context import GameContext
from .engine import NEON_RED, NEON_ORANGE
from . import boss as boss_actor
from . import helicopter as helicopter_actor
from . import vehicles as vehicle_actor
from .pickups import apply_hazard, collect_powerup
from .player import take_damage as damage_player, is_invulnerable
from .projectiles import projectiles_of, PLAYER_KINDS, HOSTILE_KINDS, MISSILE
from .systems import collision_check, entities_overlap


RAM_PUSH_VELOCITY = 150.0
RAM_PUSH_DISTANCE = 15.0
RAM_DAMAGE_TO_PLAYER = 20
RAM_DAMAGE_TO_ENEMY = 1
CRASH_DAMAGE_TO_PLAYER = 30
CRASH_DAMAGE_TO_ENEMY = 2
SEPARATION = 5.0
OIL_SPIN_DURATION = 500.0
OIL_SPIN_DAMAGE = 1


class EncounterResolver:

    def __init__(self, ctx: GameContext, traffic, progression,
                 hazards=None, powerups=None):
        self.ctx = ctx
        self.traffic = traffic
        self.progression = progression
        self.hazards = hazards
        self.powerups = powerups
        self.hits = 0

    def _boss(self) -> Optional[int]:
        boss = self.progression.boss if self.progression is not None else None
        return boss if self.ctx.world.is_alive(boss) else None

    def _player_active(self) -> bool:
        state = self.ctx.player_state()
        return state is not None and not state.game_over

    def resolve(self) -> int:
        """Apply every rule once. Returns the number of interactions handled."""
        before = self.hits
        self.player_shots()
        if self._player_active():
            self.player_vs_vehicles()
        self.vehicles_vs_vehicles()
        self.oil_vs_vehicles()
        if self._player_active():
            self.hostile_shots_vs_player()
            self.boss_vs_player()
            self.pickups_vs_player()
        return self.hits - before

    # =========================================================================
    # PLAYER FIRE
    # =========================================================================

    def _shot_targets(self) -> List[tuple]:
        targets = [(eid, vehicle_actor.take_damage) for eid in self.traffic.vehicles()]
        targets += [(eid, helicopter_actor.take_damage) for eid in self.traffic.helicopters()]
        boss = self._boss()
        if boss is not None:
            targets.append((boss, boss_actor.take_damage))
        return targets

    def player_shots(self) -> None:
        ctx = self.ctx
        world = ctx.world
        targets = self._shot_targets()
        if not targets:
            return

        for shot_id, pos, box, proj in list(projectiles_of(world, *PLAYER_KINDS)):
            for target_id, take_damage in targets:
                if not world.is_alive(shot_id):
                    break
                if not world.is_alive(target_id):
                    continue
                if not entities_overlap(world, shot_id, target_id):
                    continue

                world.destroy_entity(shot_id)
                ctx.effects.play('explosion' if proj.kind == MISSILE else 'enemy_hit')
                if take_damage(ctx, target_id, proj.damage):
                    ctx.effects.play('explosion')
                self.hits += 1
                break

    # =========================================================================
    # CONTACT
    # =========================================================================

    def player_vs_vehicles(self) -> None:
        ctx = self.ctx
        world = ctx.world
        player_id = ctx.player_id
        for eid in self.traffic.vehicles():
            if not world.is_alive(eid) or not world.is_alive(player_id):
                continue
            if not entities_overlap(world, player_id, eid):
                continue
            if vehicle_actor.is_civilian(ctx, eid):
                self._hit_civilian(eid)
            elif not is_invulnerable(ctx):
                self._hit_enemy(eid)

    def _hit_civilian(self, eid: int) -> None:
        ctx = self.ctx
        world = ctx.world
        if not is_invulnerable(ctx):
            ctx.effects.flash_damage()
            ctx.effects.play('hit')
            damage_player(ctx, CRASH_DAMAGE_TO_PLAYER)

        pos = world.get_component(eid, Position)
        ctx.effects.floating_text(pos.x, pos.y, f"-{ctx.config.civilian_penalty}", NEON_RED)
        # Killing the civilian books its (negative) points
        health = world.get_component(eid, Health)
        vehicle_actor.take_damage(ctx, eid, max(1, health.current))
        self.hits += 1

    def _hit_enemy(self, eid: int) -> None:
        ctx = self.ctx
        world = ctx.world
        player_pos = ctx.player_position()
        player_vel = world.get_component(ctx.player_id, Velocity)
        enemy_pos = world.get_component(eid, Position)

        ctx.effects.flash_damage()
        ctx.effects.play('hit')

        dx = player_pos.x - enemy_pos.x
        dy = player_pos.y - enemy_pos.y
        if abs(dx) > abs(dy) * 0.5:
            direction = 1 if dx > 0 else -1
            player_vel.x += RAM_PUSH_VELOCITY * direction
            ctx.player_state().push_x = RAM_PUSH_VELOCITY * direction
            player_pos.x += RAM_PUSH_DISTANCE * direction
            ctx.effects.floating_text(player_pos.x, player_pos.y, 'RAMMED!', NEON_ORANGE)
            ctx.effects.sparks(player_pos.x - direction * 20, player_pos.y)
            damage_player(ctx, RAM_DAMAGE_TO_PLAYER)
            vehicle_actor.take_damage(ctx, eid, RAM_DAMAGE_TO_ENEMY)
        else:
            damage_player(ctx, CRASH_DAMAGE_TO_PLAYER)
            vehicle_actor.take_damage(ctx, eid, CRASH_DAMAGE_TO_ENEMY)
        self.hits += 1

    def vehicles_vs_vehicles(self) -> None:
        world = self.ctx.world
        bodies = list(world.query(Position, CollisionBox, Vehicle))
        for i, (a, pos_a, box_a, _) in enumerate(bodies):
            for b, pos_b, box_b, _ in bodies[i + 1:]:
                if not (world.is_alive(a) and world.is_alive(b)):
                    continue
                if not collision_check(pos_a, box_a, pos_b, box_b):
                    continue
                if pos_a.x < pos_b.x:
                    pos_a.x -= SEPARATION
                    pos_b.x += SEPARATION
                else:
                    pos_a.x += SEPARATION
                    pos_b.x -= SEPARATION
                self.hits += 1

    def oil_vs_vehicles(self) -> None:
        ctx = self.ctx
        world = ctx.world
        slicks = list(world.entities_with(Position, CollisionBox, OilSlick))
        if not slicks:
            return
        for eid in self.traffic.vehicles():
            if world.has_component(eid, SpinOut):
                continue
            for slick in slicks:
                if world.is_alive(slick) and entities_overlap(world, slick, eid):
                    world.add_component(eid, SpinOut(OIL_SPIN_DURATION,
                                                     on_finish=self._spin_damage(eid)))
                    self.hits += 1
                    break

    def _spin_damage(self, eid: int):
        ctx = self.ctx

        def _finish():
            if ctx.owner_alive(eid):
                vehicle_actor.take_damage(ctx, eid, OIL_SPIN_DAMAGE)
        return _finish

    # =========================================================================
    # INCOMING FIRE
    # =========================================================================

    def hostile_shots_vs_player(self) -> None:
        ctx = self.ctx
        world = ctx.world
        player_id = ctx.player_id
        player_pos = ctx.player_position()
        player_box = world.get_component(player_id, CollisionBox)
        if player_pos is None or player_box is None:
            return

        for shot_id, pos, box, proj in list(projectiles_of(world, *HOSTILE_KINDS)):
            if not world.is_alive(shot_id) or not world.is_alive(player_id):
                continue
            if not collision_check(pos, box, player_pos, player_box):
                continue
            # Spent either way; invulnerability only cancels the damage
            world.destroy_entity(shot_id)
            if damage_player(ctx, proj.damage):
                ctx.effects.flash_damage()
                ctx.effects.play('hit')
                ctx.effects.floating_text(player_pos.x, player_pos.y, f"-{proj.damage}", NEON_RED)
            self.hits += 1

    def boss_vs_player(self) -> None:
        ctx = self.ctx
        boss = self._boss()
        if boss is None or is_invulnerable(ctx):
            return
        if not entities_overlap(ctx.world, ctx.player_id, boss):
            return
        state = ctx.world.get_component(boss, BossState)
        if damage_player(ctx, state.damage):
            ctx.effects.flash_damage()
            ctx.effects.play('hit')
            pos = ctx.player_position()
            ctx.effects.floating_text(pos.x, pos.y, f"-{state.damage}", NEON_RED)
            logger.debug("boss body hit player for {}", state.damage)
        self.hits += 1

    def pickups_vs_player(self) -> None:
        ctx = self.ctx
        world = ctx.world
        if self.hazards is not None:
            for eid in self.hazards.hazards():
                if world.is_alive(eid) and entities_overlap(world, ctx.player_id, eid):
                    if apply_hazard(ctx, eid):
                        self.hits += 1
        if self.powerups is not None:
            for eid in self.powerups.powerups():
                if world.is_alive(eid) and entities_overlap(world, ctx.player_id, eid):
                    if collect_powerup(ctx, eid):
                        self.hits += 1
