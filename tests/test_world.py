import numpy as np
import pytest

from ecosim.entities import Fire, Grass
from ecosim.errors import InvariantViolation, OccupationError
from ecosim.geometry import Boundary, MapDirection, Vector2d
from ecosim.world import WorldMap

from conftest import make_animal, make_cfg


def test_place_and_query(world):
    a = make_animal(0, 2, 3)
    g = Grass(Vector2d(2, 3))
    world.place(g)
    world.place(a)
    assert world.is_occupied(Vector2d(2, 3))
    assert world.objects_at(Vector2d(2, 3)) == [g, a]
    assert world.objects_at(Vector2d(0, 0)) == []
    assert not world.is_occupied(Vector2d(0, 0))
    assert world.grass_at(Vector2d(2, 3)) is g
    assert world.grass_count == 1
    assert world.animals() == [a]


def test_objects_at_returns_a_copy(world):
    a = make_animal(0, 1, 1)
    world.place(a)
    world.objects_at(Vector2d(1, 1)).clear()
    assert world.animals_at(Vector2d(1, 1)) == [a]


def test_grass_and_fire_are_exclusive(world):
    world.place(Grass(Vector2d(1, 1)))
    with pytest.raises(OccupationError):
        world.place(Grass(Vector2d(1, 1)))
    with pytest.raises(OccupationError):
        world.place(Fire(Vector2d(1, 1)))
    # animals share cells freely
    world.place(make_animal(0, 1, 1))
    world.place(make_animal(1, 1, 1))
    assert len(world.animals_at(Vector2d(1, 1))) == 2


def test_place_outside_map_fails(world):
    with pytest.raises(OccupationError):
        world.place(make_animal(0, 10, 0))


def test_remove_is_safe_when_absent(world):
    a = make_animal(0, 4, 4)
    world.remove(a)
    world.place(a)
    world.remove(a)
    world.remove(a)
    assert not world.is_occupied(Vector2d(4, 4))


def test_move_keeps_index_consistent(world):
    a = make_animal(0, 4, 9)
    b = make_animal(1, 4, 9)
    world.place(a)
    world.place(b)
    world.move(a, MapDirection.NORTH)
    assert a.position == Vector2d(4, 9)
    assert a.direction is MapDirection.SOUTH
    world.move(a, MapDirection.SOUTH)
    assert a.position == Vector2d(4, 8)
    assert world.animals_at(Vector2d(4, 9)) == [b]
    assert world.animals_at(Vector2d(4, 8)) == [a]
    world.check_consistency()


def test_check_consistency_detects_stale_position(world):
    a = make_animal(0, 4, 4)
    world.place(a)
    a.position = Vector2d(5, 5)
    with pytest.raises(InvariantViolation):
        world.check_consistency()


def test_bounds_follow_occupancy(world):
    assert world.current_bounds() == world.boundary
    a = make_animal(0, 2, 3)
    b = make_animal(1, 7, 1)
    world.place(a)
    world.place(b)
    assert world.current_bounds() == Boundary(Vector2d(2, 1), Vector2d(7, 3))
    world.remove(b)
    assert world.current_bounds() == Boundary(Vector2d(2, 3), Vector2d(2, 3))
    world.move(a, MapDirection.EAST)
    assert world.current_bounds() == Boundary(Vector2d(3, 3), Vector2d(3, 3))


def test_top_element_is_strongest_animal(world):
    p = Vector2d(5, 5)
    world.place(Grass(p))
    assert isinstance(world.object_at(p), Grass)
    weak = make_animal(0, 5, 5, energy=3)
    strong = make_animal(2, 5, 5, energy=9)
    tied = make_animal(1, 5, 5, energy=9)
    for a in (weak, strong, tied):
        world.place(a)
    assert world.object_at(p) is tied
    assert world.object_at(Vector2d(0, 0)) is None


@pytest.mark.parametrize("height, frac, rows", [
    (10, 0.2, {4, 5}),
    (5, 0.2, {2}),
    (1, 0.5, {0}),
    (7, 0.5, {1, 2, 3, 4}),
])
def test_equator_rows(height, frac, rows):
    w = WorldMap(make_cfg(H=height, EQUATOR_FRAC=frac), np.random.default_rng(0))
    assert w.equator == frozenset(rows)


def test_grass_grows_only_on_free_cells(rng):
    w = WorldMap(make_cfg(W=3, H=3, GRASS_PLACEMENT="uniform"), rng)
    for i, p in enumerate(w.free_cells()[:-1]):
        w.place(make_animal(i, p.x, p.y))
    free = w.free_cells()
    assert len(free) == 1
    grown = w.spawn_grass(5)
    assert [g.position for g in grown] == free
    assert w.spawn_grass(5) == []


def test_grass_prefers_equator(rng):
    w = WorldMap(make_cfg(GRASS_PLACEMENT="equator", EQUATOR_FRAC=0.2, EQUATOR_WEIGHT=1e9), rng)
    grown = w.spawn_grass(10)
    assert len(grown) == 10
    assert all(w.is_equator(g.position) for g in grown)


def test_uniform_grass_is_seeded():
    cfg = make_cfg(GRASS_PLACEMENT="uniform")
    a = WorldMap(cfg, np.random.default_rng(3))
    b = WorldMap(cfg, np.random.default_rng(3))
    a.spawn_grass(15)
    b.spawn_grass(15)
    assert a.grass_positions() == b.grass_positions()
    assert a.grass_count == 15


def test_fire_lifecycle(rng):
    w = WorldMap(make_cfg(VARIANT="fire", FIRE_FREQUENCY=5, FIRE_DURATION=2), rng)
    w.place(Grass(Vector2d(5, 5)))

    w.update_fires(4)
    assert w.fires == []

    w.update_fires(5)
    assert [f.position for f in w.fires] == [Vector2d(5, 5)]
    assert w.grass_count == 0

    w.place(Grass(Vector2d(5, 6)))
    w.place(Grass(Vector2d(7, 7)))
    w.update_fires(6)
    assert [(f.position, f.age) for f in w.fires] == [(Vector2d(5, 5), 1), (Vector2d(5, 6), 0)]
    assert w.grass_positions() == [Vector2d(7, 7)]

    w.update_fires(7)
    w.update_fires(8)
    assert [(f.position, f.age) for f in w.fires] == [(Vector2d(5, 6), 2)]
    w.update_fires(9)
    assert w.fires == []
    assert not w.is_occupied(Vector2d(5, 5))


def test_burning_animals(rng):
    w = WorldMap(make_cfg(VARIANT="fire"), rng)
    w.place(Fire(Vector2d(2, 2)))
    a = make_animal(0, 2, 2)
    b = make_animal(1, 3, 2)
    w.place(a)
    w.place(b)
    assert w.burning_animals() == [a]


def test_no_fires_without_hazard_variant(world):
    world.place(Grass(Vector2d(1, 1)))
    for day in range(1, 30):
        world.update_fires(day)
    assert world.fires == []
    assert world.grass_count == 1


def test_snapshot_is_detached(world):
    a = make_animal(0, 1, 1, energy=5)
    world.place(a)
    world.place(Grass(Vector2d(3, 3)))
    snap = world.snapshot(day=4, stats={"day": 4})

    assert snap.is_occupied(Vector2d(1, 1))
    assert snap.object_at(Vector2d(1, 1)).energy == 5
    assert snap.objects_at(Vector2d(3, 3))[0].kind == "grass"
    assert [e.id for e in snap.animals()] == [0]
    with pytest.raises(TypeError):
        snap.cells[Vector2d(0, 0)] = ()

    world.move(a, MapDirection.EAST)
    a.energy = 99
    assert snap.is_occupied(Vector2d(1, 1))
    assert not snap.is_occupied(Vector2d(2, 1))
    assert snap.object_at(Vector2d(1, 1)).energy == 5
    assert snap.current_bounds() == Boundary(Vector2d(1, 1), Vector2d(3, 3))
