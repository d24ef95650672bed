import numpy as np
import pytest

from centroidlink.core._dissimilarity import CentroidDissimilarity
from centroidlink.core._encoder import LinkageWriter, count_inversions, encode_dendrogram, is_canonical
from centroidlink.core._engine import MergeEvents, generic_linkage
from centroidlink.exceptions import InvalidArgumentError, LinkageError, OutputTooSmallError


def events_from(rows):
    rows = np.asarray(rows, dtype=np.float64)
    return MergeEvents.from_arrays(rows[:, 0], rows[:, 1], rows[:, 2])


def linkage_of(points):
    n_points = len(points)
    model = CentroidDissimilarity(points)
    events = generic_linkage(n_points, model)
    model.finalize_distances(events)
    return encode_dendrogram(events, n_points)


@pytest.mark.required
class TestLinkageWriter:
    def test_orders_pair(self):
        writer = LinkageWriter(1)
        writer.append(3, 1, 0.5, 2.0)
        np.testing.assert_array_equal(writer.result(), [[1.0, 3.0, 0.5, 2.0]])

    def test_full(self):
        writer = LinkageWriter(1)
        writer.append(0, 1, 0.5, 2.0)
        with pytest.raises(OutputTooSmallError):
            writer.append(2, 3, 0.5, 3.0)

    def test_incomplete(self):
        writer = LinkageWriter(2)
        writer.append(0, 1, 0.5, 2.0)
        assert len(writer) == 1
        with pytest.raises(LinkageError):
            writer.result()

    def test_writes_into_buffer(self):
        out = np.full(9, -1.0)
        writer = LinkageWriter(2, out)
        writer.append(0, 1, 0.5, 2.0)
        writer.append(2, 3, 0.75, 3.0)
        result = writer.result()
        assert np.shares_memory(result, out)
        np.testing.assert_array_equal(out, [0.0, 1.0, 0.5, 2.0, 2.0, 3.0, 0.75, 3.0, -1.0])

    def test_buffer_too_small(self):
        with pytest.raises(OutputTooSmallError):
            LinkageWriter(2, np.empty(7))

    @pytest.mark.parametrize(
        "out",
        [
            np.empty(8, dtype=np.float32),
            np.empty((8, 2))[:, 0],
        ],
    )
    def test_unusable_buffer(self, out):
        with pytest.raises(InvalidArgumentError):
            LinkageWriter(2, out)

    def test_size_of(self):
        writer = LinkageWriter(2)
        writer.append(0, 1, 0.5, 2.0)
        assert writer.size_of(2, 3) == 1.0
        assert writer.size_of(3, 3) == 2.0
        with pytest.raises(LinkageError):
            writer.size_of(4, 3)


@pytest.mark.required
class TestEncodeDendrogram:
    def test_four_points(self, four_points, four_points_linkage):
        np.testing.assert_allclose(linkage_of(four_points), four_points_linkage)

    def test_sorts_and_relabels(self):
        events = events_from([[0, 1, 5.0], [2, 3, 1.0], [4, 5, 7.0]])
        linkage = encode_dendrogram(events, 4)
        np.testing.assert_array_equal(
            linkage,
            [
                [2.0, 3.0, 1.0, 2.0],
                [0.0, 1.0, 5.0, 2.0],
                [4.0, 5.0, 7.0, 4.0],
            ],
        )

    def test_relabels_nested_merges(self):
        # Engine ids 5 and 6 swap places once sorted.
        events = events_from([[0, 1, 4.0], [2, 3, 1.0], [4, 6, 2.0], [5, 7, 6.0]])
        linkage = encode_dendrogram(events, 5)
        np.testing.assert_array_equal(
            linkage,
            [
                [2.0, 3.0, 1.0, 2.0],
                [4.0, 5.0, 2.0, 3.0],
                [0.0, 1.0, 4.0, 2.0],
                [6.0, 7.0, 6.0, 5.0],
            ],
        )
        assert is_canonical(linkage)

    def test_stable_ties(self):
        events = events_from([[2, 3, 1.0], [0, 1, 1.0], [4, 5, 2.0]])
        linkage = encode_dendrogram(events, 4)
        assert linkage[:, :2].tolist() == [[2.0, 3.0], [0.0, 1.0], [4.0, 5.0]]

    def test_inversion_keeps_children_first(self):
        events = events_from([[0, 1, 2.0], [2, 3, 1.5]])
        linkage = encode_dendrogram(events, 3)
        np.testing.assert_array_equal(linkage, [[0.0, 1.0, 2.0, 2.0], [2.0, 3.0, 1.5, 3.0]])
        assert count_inversions(linkage) == 1

    @pytest.mark.parametrize("shape", [(2, 1), (7, 3), (60, 4)])
    def test_idempotent(self, RNG, shape):
        linkage = linkage_of(RNG.normal(size=shape))
        again = encode_dendrogram(events_from(linkage), shape[0])
        np.testing.assert_array_equal(again, linkage)

    def test_single_point(self):
        linkage = encode_dendrogram(MergeEvents(0), 1)
        assert linkage.shape == (0, 4)

    def test_wrong_event_count(self):
        with pytest.raises(LinkageError):
            encode_dendrogram(events_from([[0, 1, 1.0]]), 4)

    @pytest.mark.parametrize(
        "rows",
        [
            [[0, 4, 1.0], [1, 2, 2.0], [3, 5, 3.0]],  # node 4 does not exist yet
            [[0, 1, 1.0], [0, 2, 2.0], [3, 4, 3.0]],  # leaf 0 merged twice
            [[0, 0, 1.0], [1, 2, 2.0], [3, 4, 3.0]],  # self merge
            [[-1, 1, 1.0], [2, 3, 2.0], [4, 5, 3.0]],
        ],
    )
    def test_malformed(self, rows):
        with pytest.raises(LinkageError):
            encode_dendrogram(events_from(rows), 4)

    def test_into_buffer(self, four_points, four_points_linkage):
        model = CentroidDissimilarity(four_points)
        events = generic_linkage(4, model)
        model.finalize_distances(events)
        out = np.zeros(12)
        encode_dendrogram(events, 4, out)
        np.testing.assert_allclose(out.reshape(3, 4), four_points_linkage)

    def test_debug_logging(self, caplog, inversion_points):
        import logging

        with caplog.at_level(logging.DEBUG, logger="centroidlink"):
            linkage_of(inversion_points)
        assert any("with 1 inversions" in rec.getMessage() for rec in caplog.records)


@pytest.mark.required
class TestIsCanonical:
    def test_valid(self, four_points_linkage):
        assert is_canonical(four_points_linkage)
        assert is_canonical(four_points_linkage, 4)

    def test_empty(self):
        assert is_canonical(np.empty((0, 4)), 1)

    def test_wrong_point_count(self, four_points_linkage):
        assert not is_canonical(four_points_linkage, 5)

    @pytest.mark.parametrize(
        "row, column, value",
        [
            (0, 0, 1.0),  # left == right
            (2, 0, 6.0),  # forward reference
            (2, 3, 3.0),  # size mismatch
            (1, 2, -1.0),  # negative distance
            (1, 2, np.nan),
            (0, 1, 0.5),  # non-integer id
        ],
    )
    def test_invalid(self, four_points_linkage, row, column, value):
        four_points_linkage[row, column] = value
        assert not is_canonical(four_points_linkage)

    def test_swapped_pair(self, four_points_linkage):
        four_points_linkage[2, :2] = [5.0, 4.0]
        assert not is_canonical(four_points_linkage)

    def test_wrong_shape(self):
        assert not is_canonical(np.zeros((3, 3)))
