"""Tests for the graph of squares."""

import numpy as np
import pytest

from modgraph.graph.model import (
    ModulusError,
    SquareGraph,
    build_graph,
    parse_modulus,
    validate_modulus,
)


# =============================================================================
# Modulus validation
# =============================================================================

class TestModulus:
    """Tests for modulus checking and parsing."""

    @pytest.mark.parametrize("bad", [1, 0, -3])
    def test_rejects_small_modulus(self, bad):
        with pytest.raises(ModulusError, match="greater than 1"):
            build_graph(bad)

    @pytest.mark.parametrize("bad", [2.5, "8", None, True])
    def test_rejects_non_integer(self, bad):
        with pytest.raises(ModulusError, match="integer"):
            validate_modulus(bad)

    def test_modulus_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_graph(1)

    def test_accepts_numpy_integer(self):
        graph = build_graph(np.int64(8))
        assert graph.modulus == 8
        assert type(graph.modulus) is int
        assert list(graph.successors) == [0, 1, 4, 1, 0, 1, 4, 1]

    def test_parse_modulus(self):
        assert parse_modulus("12") == 12
        assert parse_modulus(" 7 ") == 7

    @pytest.mark.parametrize("text", ["abc", "", "1", "-4", "3.0"])
    def test_parse_modulus_rejects(self, text):
        with pytest.raises(ModulusError):
            parse_modulus(text)


# =============================================================================
# Structure
# =============================================================================

class TestStructure:
    """Tests for successors, predecessors and edges."""

    def test_successors_modulus_8(self, graph8):
        assert list(graph8.successors) == [0, 1, 4, 1, 0, 1, 4, 1]

    def test_successors_modulus_5(self, graph5):
        assert list(graph5.successors) == [0, 1, 4, 4, 1]

    def test_smallest_modulus(self):
        graph = build_graph(2)
        assert list(graph.successors) == [0, 1]
        assert len(graph) == 2

    def test_predecessors_sorted(self, graph8):
        assert graph8.predecessors[0] == (0, 4)
        assert graph8.predecessors[1] == (1, 3, 5, 7)
        assert graph8.predecessors[4] == (2, 6)
        assert graph8.predecessors[3] == ()

    def test_exactly_one_edge_per_node(self):
        graph = build_graph(30)
        edges = list(graph.edges())
        assert len(edges) == 30
        assert [source for source, _ in edges] == list(range(30))
        for source, target in edges:
            assert target == (source * source) % 30

    def test_predecessors_invert_successors(self):
        graph = build_graph(45)
        for i in range(45):
            for p in graph.predecessors[i]:
                assert graph.next(p) == i
        assert sum(graph.in_degree(i) for i in range(45)) == 45

    def test_neighbors(self, graph8):
        assert list(graph8.neighbors(4)) == [0, 2, 6]
        assert list(graph8.neighbors(3)) == [1]

    def test_node_view(self, graph8):
        node = graph8.node(1)
        assert node.next == 1
        assert node.is_fixed_point
        assert node.component_id is None
        assert not graph8.node(2).is_fixed_point

    def test_node_out_of_range(self, graph8):
        with pytest.raises(IndexError):
            graph8.node(8)

    def test_nodes_in_order(self, graph5):
        assert [n.index for n in graph5.nodes()] == [0, 1, 2, 3, 4]

    def test_repr(self, graph8):
        assert repr(graph8) == "SquareGraph(modulus=8)"

    def test_build_graph_returns_square_graph(self):
        assert isinstance(build_graph(3), SquareGraph)
