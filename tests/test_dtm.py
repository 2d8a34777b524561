import logging

import numpy as np
import pytest
from gensim import corpora

from dtm import DocumentTermMatrix, EmptyDocumentError, build_dtm


def test_counts_are_exact(disjoint_dtm):
    frame = disjoint_dtm.to_frame()
    space = frame[frame["document"] == "Space Saga"].set_index("term")["count"]
    assert space.to_dict() == {"spaceship": 10, "alien": 10, "laser": 10}


def test_no_cells_for_absent_terms(disjoint_dtm):
    frame = disjoint_dtm.to_frame()
    assert (frame["count"] > 0).all()
    assert not ((frame["document"] == "Space Saga") & (frame["term"] == "bride")).any()


def test_sparse_matrix_shape_and_dtype(disjoint_dtm):
    m = disjoint_dtm.to_sparse()
    assert m.shape == (3, 9)
    assert np.issubdtype(m.dtype, np.integer)
    assert m.min() >= 0
    assert m.sum() == 90


def test_vocabulary_is_union_without_pruning():
    dtm = build_dtm({"a": ["x", "y"], "b": ["y", "z", "rare"]})
    assert sorted(dtm.terms) == ["rare", "x", "y", "z"]
    assert list(dtm.doc_lengths) == [2.0, 3.0]


def test_empty_documents_excluded_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="dtm"):
        dtm = build_dtm({"a": ["x"], "empty": [], "b": ["y"]})
    assert dtm.documents == ["a", "b"]
    assert dtm.excluded == ["empty"]
    assert dtm.n_documents == 2
    assert "Excluded 1 document" in caplog.text


def test_all_empty_raises():
    with pytest.raises(EmptyDocumentError):
        build_dtm({"a": [], "b": []})


def test_matrix_rejects_empty_row():
    dictionary = corpora.Dictionary([["x"]])
    with pytest.raises(EmptyDocumentError):
        DocumentTermMatrix(["a", "b"], dictionary, [[(0, 1)], []])
