"""Tests for KNN index and graph construction."""

import numpy as np
import pandas as pd
import pytest

import cytotime as ct


def _edges(graph):
    dense = graph.toarray()
    return {(i, j) for i, j in zip(*np.nonzero(dense))}


def test_knn_index_excludes_self():
    coords = np.array([[0.0], [1.0], [2.1], [3.3], [4.6]])
    knn = ct.compute_knn_index(coords, n_neighbors=2)

    assert knn.shape == (5, 2)
    for i, row in enumerate(knn):
        assert i not in row
    assert list(knn[:, 0]) == [1, 0, 1, 2, 3]


def test_knn_index_caps_neighbors():
    coords = pd.DataFrame([[0.0], [1.0], [2.0]], index=["a", "b", "c"])
    assert ct.compute_knn_index(coords, n_neighbors=30).shape == (3, 2)
    assert ct.compute_knn_index(coords.iloc[:1], n_neighbors=30).shape == (1, 0)


def test_undirected_path_graph():
    graph = ct.build_graph(np.array([[1], [0], [1], [2], [3]]), mode="undirected")

    assert graph.shape == (5, 5)
    assert _edges(graph) == {
        (0, 1), (1, 0), (1, 2), (2, 1), (2, 3), (3, 2), (3, 4), (4, 3),
    }
    assert set(graph.data) == {1.0}


@pytest.mark.parametrize("mode", ["max", "plus"])
def test_max_and_plus_match_undirected(mode):
    knn = np.array([[1, 2], [0, 2], [1, 0]])
    expected = ct.build_graph(knn, mode="undirected").toarray()
    np.testing.assert_array_equal(ct.build_graph(knn, mode=mode).toarray(), expected)


def test_directed_keeps_asymmetry():
    graph = ct.build_graph(np.array([[1], [0], [1]]), mode=ct.GraphMode.DIRECTED)
    assert _edges(graph) == {(0, 1), (1, 0), (2, 1)}


def test_min_requires_both_directions():
    graph = ct.build_graph(np.array([[1], [0], [1]]), mode="min")
    assert _edges(graph) == {(0, 1), (1, 0)}


def test_upper_and_lower_triangles():
    knn = np.array([[1], [2], [0]])

    upper = ct.build_graph(knn, mode="upper")
    assert _edges(upper) == {(0, 1), (1, 0), (1, 2), (2, 1)}

    lower = ct.build_graph(knn, mode="lower")
    assert _edges(lower) == {(0, 2), (2, 0)}


def test_self_loops_removed():
    graph = ct.build_graph(np.array([[0], [0]]))
    assert graph.diagonal().sum() == 0
    assert _edges(graph) == {(0, 1), (1, 0)}


def test_identity_table_input():
    table = pd.DataFrame({"nn1": ["B", "A", "B"]}, index=["A", "B", "C"])
    graph = ct.build_graph(table)
    assert _edges(graph) == {(0, 1), (1, 0), (1, 2), (2, 1)}


def test_invalid_inputs():
    with pytest.raises(ct.InvalidArgumentError):
        ct.build_graph(np.array([[1], [0]]), mode="sideways")
    with pytest.raises(ct.InvalidArgumentError):
        ct.build_graph(np.array([[5], [0]]))
    with pytest.raises(ct.InvalidArgumentError):
        ct.build_graph(pd.DataFrame({"nn1": ["Z", "A"]}, index=["A", "B"]))
