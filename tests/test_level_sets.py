"""Tests for mapping/level_sets.py."""

import numpy as np
import pytest

from mapper_core.errors import DegenerateInputWarning
from mapping.cover import build_cover
from mapping.level_sets import extract_level_sets


def _level_sets(values, intervals, overlap, workers=1):
    values = np.asarray(values, dtype=float)
    if values.ndim == 1:
        values = values.reshape(-1, 1)
    cover = build_cover(values, intervals, overlap)
    return extract_level_sets(values, cover, workers=workers)


class TestMembership:
    def test_boundary_point_in_both_cells(self):
        level_sets = _level_sets([0.0, 1.0, 2.0], 2, 0)
        assert level_sets.members[(0,)].tolist() == [0, 1]
        assert level_sets.members[(1,)].tolist() == [1, 2]

    def test_members_sorted_and_read_only(self, rng):
        level_sets = _level_sets(rng.uniform(size=200), 4, 25)
        for _cell, members in level_sets:
            assert np.all(np.diff(members) > 0)
            assert members.dtype == np.int64
            with pytest.raises(ValueError):
                members[0] = -1

    def test_empty_cells_dropped(self):
        values = np.array([[0.0, 0.0], [1.0, 1.0]])
        with pytest.warns(DegenerateInputWarning):
            level_sets = _level_sets(values, 2, 0)
        assert len(level_sets.cover) == 4
        assert len(level_sets) == 2
        assert (0, 0) in level_sets
        assert (1, 1) in level_sets
        assert (0, 1) not in level_sets

    def test_iteration_follows_cell_order(self, rng):
        level_sets = _level_sets(rng.uniform(size=(100, 2)), 3, 20)
        indices = [cell.index for cell, _members in level_sets]
        assert indices == sorted(indices)

    def test_singleton_level_set_warns(self):
        with pytest.warns(DegenerateInputWarning, match="single point"):
            _level_sets([0.0, 10.0], 2, 0)

    def test_workers_do_not_change_result(self, rng):
        values = rng.normal(size=(400, 2))
        serial = _level_sets(values, [5, 4], 30, workers=1)
        threaded = _level_sets(values, [5, 4], 30, workers=4)
        assert [c.index for c in serial.cells] == [c.index for c in threaded.cells]
        for index, members in serial.members.items():
            np.testing.assert_array_equal(members, threaded.members[index])


class TestAdjacency:
    def test_face_adjacent_pairs_1d(self):
        level_sets = _level_sets(np.linspace(0, 3, 31), 3, 0)
        assert level_sets.face_adjacent_pairs() == [((0,), (1,)), ((1,), (2,))]

    def test_diagonal_cells_are_not_face_adjacent(self):
        values = np.array([[0.0, 0.0], [1.0, 1.0]])
        with pytest.warns(DegenerateInputWarning):
            level_sets = _level_sets(values, 2, 0)
        assert level_sets.face_adjacent_pairs() == []

    def test_face_adjacent_pairs_2d_grid(self):
        grid = np.array([[x, y] for x in np.linspace(0, 1, 11) for y in np.linspace(0, 1, 11)])
        level_sets = _level_sets(grid, 2, 0)
        assert level_sets.face_adjacent_pairs() == [
            ((0, 0), (1, 0)),
            ((0, 0), (0, 1)),
            ((0, 1), (1, 1)),
            ((1, 0), (1, 1)),
        ]


class TestOverlapMonotonicity:
    def test_shared_points_grow_with_overlap(self, rng):
        values = rng.uniform(size=500)
        previous = None
        for overlap in [0, 10, 20, 40, 60]:
            level_sets = _level_sets(values, 4, overlap)
            shared = [
                np.intersect1d(level_sets.members[a], level_sets.members[b]).shape[0]
                for a, b in level_sets.face_adjacent_pairs()
            ]
            if previous is not None:
                assert all(s >= p for s, p in zip(shared, previous))
            previous = shared

    def test_point_counts(self):
        level_sets = _level_sets([0.0, 1.0, 2.0], 2, 0)
        assert level_sets.point_counts().tolist() == [1, 2, 1]
