import numpy as np
import pytest

from centroidlink.core._dissimilarity import CentroidDissimilarity
from centroidlink.core._engine import MergeEvents, generic_linkage
from centroidlink.exceptions import LinkageError, NumericError


class AbsoluteDifference:
    """One-dimensional model keeping the lower end of each merged interval."""

    def __init__(self, values):
        self.values = list(values) + [0.0] * (len(values) - 1)
        self.merged = []

    def initial_distance(self, i, j, check_nan=True):
        return abs(self.values[i] - self.values[j])

    def extended_distance(self, i, j, check_nan=True):
        return abs(self.values[i] - self.values[j])

    def merge(self, i, j, new_index):
        self.values[new_index] = min(self.values[i], self.values[j])
        self.merged.append((i, j, new_index))

    def finalize_distances(self, events):
        pass


@pytest.mark.required
class TestMergeEvents:
    def test_append(self):
        events = MergeEvents(2)
        events.append(0, 1, 0.5)
        assert len(events) == 1
        assert events.capacity == 2
        assert events.left[0] == 0
        assert events.right[0] == 1
        assert events.distance[0] == 0.5

    def test_append_past_capacity(self):
        events = MergeEvents(1)
        events.append(0, 1, 0.5)
        with pytest.raises(LinkageError):
            events.append(1, 2, 0.5)

    def test_from_arrays(self):
        events = MergeEvents.from_arrays(np.array([0.0, 2.0]), np.array([1.0, 3.0]), np.array([1.0, 2.0]))
        assert len(events) == 2
        assert events.left.tolist() == [0, 2]
        assert events.right.tolist() == [1, 3]

    def test_from_arrays_mismatch(self):
        with pytest.raises(ValueError):
            MergeEvents.from_arrays([0], [1, 2], [1.0])

    def test_index_dtype_follows_config(self):
        from centroidlink.config import use_index_dtype

        with use_index_dtype(np.int32):
            events = MergeEvents(3)
        assert events.left.dtype == np.int32
        assert MergeEvents(3).left.dtype == np.int64


@pytest.mark.required
class TestGenericLinkage:
    def test_four_points(self, four_points):
        events = generic_linkage(4, CentroidDissimilarity(four_points))
        assert len(events) == 3
        assert events.left.tolist() == [0, 2, 4]
        assert events.right.tolist() == [1, 3, 5]
        assert events.distance.tolist() == [1.0, 1.0, 50.0]

    @pytest.mark.parametrize("n_points", [0, 1])
    def test_no_merges(self, n_points):
        events = generic_linkage(n_points, CentroidDissimilarity(np.zeros((n_points, 2))))
        assert len(events) == 0

    def test_two_points(self):
        events = generic_linkage(2, CentroidDissimilarity(np.array([[0.0], [3.0]])))
        assert events.left.tolist() == [0]
        assert events.right.tolist() == [1]
        assert events.distance.tolist() == [9.0]

    @pytest.mark.parametrize("shape", [(3, 1), (10, 2), (40, 5)])
    def test_binary_tree(self, RNG, shape):
        n_points = shape[0]
        events = generic_linkage(n_points, CentroidDissimilarity(RNG.random(shape)))
        assert len(events) == n_points - 1

        consumed = np.concatenate([events.left, events.right])
        assert np.unique(consumed).size == 2 * (n_points - 1)
        for k in range(n_points - 1):
            assert events.left[k] < n_points + k
            assert events.right[k] < n_points + k
        # Only the root is never consumed
        assert set(range(2 * n_points - 1)) - set(consumed.tolist()) == {2 * n_points - 2}

    def test_inversion(self, inversion_points):
        events = generic_linkage(3, CentroidDissimilarity(inversion_points))
        assert events.left.tolist() == [0, 2]
        assert events.right.tolist() == [1, 3]
        np.testing.assert_allclose(events.distance, [1.0, 0.81])

    def test_duplicates(self):
        events = generic_linkage(5, CentroidDissimilarity(np.ones((5, 3))))
        assert len(events) == 4
        assert (events.distance == 0.0).all()

    def test_nan_propagates(self):
        points = np.array([[0.0, 0.0], [1.0, np.nan], [2.0, 2.0]])
        with pytest.raises(NumericError):
            generic_linkage(3, CentroidDissimilarity(points))

    def test_custom_merge_rule(self):
        points = np.array([[0.0], [1.0], [10.0]])
        model = CentroidDissimilarity(points)
        generic_linkage(3, model, merge=model.merge_unweighted)
        np.testing.assert_array_equal(model.space.representative(4), [5.25])

    def test_custom_model(self):
        model = AbsoluteDifference([0.0, 10.0, 1.0, 12.0])
        events = generic_linkage(4, model)
        assert model.merged == [(0, 2, 4), (1, 3, 5), (4, 5, 6)]
        assert events.distance.tolist() == [1.0, 2.0, 10.0]

    def test_deterministic(self, RNG):
        points = RNG.random((25, 3))
        first = generic_linkage(25, CentroidDissimilarity(points))
        second = generic_linkage(25, CentroidDissimilarity(points.copy()))
        assert first.left.tobytes() == second.left.tobytes()
        assert first.right.tobytes() == second.right.tobytes()
        assert first.distance.tobytes() == second.distance.tobytes()

    def test_debug_logging(self, caplog, four_points):
        import logging

        with caplog.at_level(logging.DEBUG, logger="centroidlink"):
            generic_linkage(4, CentroidDissimilarity(four_points))
        messages = [rec.getMessage() for rec in caplog.records]
        assert any("(0, 1) -> 4" in message for message in messages)
        assert any("Recorded 3 merges" in message for message in messages)
