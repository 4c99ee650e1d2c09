"""Tests for k-means seed sampling."""

import numpy as np
import pandas as pd
import pytest

import cytotime as ct


@pytest.fixture
def blobs():
    """Three tight, well separated blobs of ten cells, interleaved by row."""
    rng = np.random.default_rng(0)
    centers = np.array([[0.0, 0.0], [50.0, 0.0], [0.0, 50.0]])
    rows = [centers[i % 3] + rng.normal(0, 0.1, 2) for i in range(30)]
    return pd.DataFrame(rows, index=[f"c{i}" for i in range(30)], columns=["x", "y"])


def test_identity_below_threshold(blobs):
    sample = ct.sample_seeds(blobs, max_size=30)

    assert not sample.subsampled
    assert sample.seeds == list(blobs.index)
    assert list(sample.cluster_assignment) == list(range(1, 31))
    pd.testing.assert_frame_equal(sample.matrix, blobs)


def test_kmeans_above_threshold(blobs):
    sample = ct.sample_seeds(blobs, max_size=3, random_state=0, n_init=10)
    assignment = sample.cluster_assignment

    assert sample.subsampled
    assert sample.n_seeds == 3
    assert list(assignment.index) == list(blobs.index)
    assert set(assignment) == {1, 2, 3}

    # each blob is one cluster
    for offset in range(3):
        members = assignment.iloc[offset::3]
        assert members.nunique() == 1


def test_seed_is_first_member_of_its_cluster(blobs):
    sample = ct.sample_seeds(blobs, max_size=3, random_state=0, n_init=10)
    assignment = sample.cluster_assignment

    for seed in sample.seeds:
        cluster = assignment[seed]
        first = assignment.index[assignment.to_numpy() == cluster][0]
        assert seed == first

    # seeds come in cluster-index order and the matrix follows them
    assert list(assignment[sample.seeds]) == sorted(assignment[sample.seeds])
    assert list(sample.matrix.index) == sample.seeds


def test_seed_sampling_rejects_bad_input(blobs):
    with pytest.raises(ct.InvalidArgumentError):
        ct.sample_seeds(blobs.to_numpy())
    with pytest.raises(ct.InvalidArgumentError):
        ct.sample_seeds(blobs, max_size=0)
