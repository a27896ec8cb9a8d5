"""
tests/test_tsplib.py
────────────────────
TSPLIB reader and reference-solution tests.

Test groups:
    Group 1 — Coordinate instances (EUC_2D, CEIL_2D, ATT, GEO)
    Group 2 — EXPLICIT instances (FULL_MATRIX, UPPER_ROW, LOWER_DIAG_ROW)
    Group 3 — Malformed input → TsplibParseError
    Group 4 — Known-optimal solutions file
"""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pytest

from tsp_solver.shared.models import EdgeWeightFormat, EdgeWeightType
from tsp_solver.tsplib import (
    SolutionsFileError,
    TsplibParseError,
    evaluate_solution,
    load_optimal_solutions,
    parse_tsp_file,
    parse_tsp_text,
)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _coord_instance(weight_type: str, coords, name: str = "sample") -> str:
    lines = [
        f"NAME : {name}",
        "TYPE : TSP",
        f"DIMENSION : {len(coords)}",
        f"EDGE_WEIGHT_TYPE : {weight_type}",
        "NODE_COORD_SECTION",
    ]
    lines += [f"{i + 1} {x} {y}" for i, (x, y) in enumerate(coords)]
    lines.append("EOF")
    return "\n".join(lines) + "\n"


def _explicit_instance(fmt: str, n: int, body: str) -> str:
    return (
        "NAME : explicit\n"
        "TYPE : TSP\n"
        f"DIMENSION : {n}\n"
        "EDGE_WEIGHT_TYPE : EXPLICIT\n"
        f"EDGE_WEIGHT_FORMAT : {fmt}\n"
        "EDGE_WEIGHT_SECTION\n"
        f"{body}\n"
        "EOF\n"
    )


SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


# ─────────────────────────────────────────────────────────────────────────────
# Group 1 — Coordinate instances
# ─────────────────────────────────────────────────────────────────────────────

class TestCoordinateInstances:

    def test_euc_2d_header_and_matrix(self):
        inst = parse_tsp_text(_coord_instance("EUC_2D", SQUARE, name="square"))
        assert inst.name == "square"
        assert inst.tsp_type == "TSP"
        assert inst.dimension == 4
        assert inst.edge_weight_type is EdgeWeightType.EUC_2D
        assert inst.edge_weight_format is None
        d = inst.distance_table()
        assert d[0, 1] == pytest.approx(1.0)
        assert d[0, 2] == pytest.approx(math.sqrt(2.0))
        assert np.all(np.diag(d) == 0.0)

    def test_node_ids_are_kept(self):
        inst = parse_tsp_text(_coord_instance("EUC_2D", SQUARE))
        assert [n.id for n in inst.node_coords] == [1, 2, 3, 4]

    def test_ceil_2d_rounds_up(self):
        inst = parse_tsp_text(_coord_instance("CEIL_2D", [(0, 0), (1, 1)]))
        assert inst.distance(0, 1) == 2.0

    def test_att_pseudo_euclidean(self):
        inst = parse_tsp_text(_coord_instance("ATT", [(0, 0), (10, 0), (30, 40)]))
        # r = sqrt(100 / 10) = 3.162 → t = 3 < r → 4
        assert inst.distance(0, 1) == 4.0
        # r = sqrt(2500 / 10) = 15.81 → t = 16 ≥ r → 16
        assert inst.distance(0, 2) == 16.0

    def test_geo_is_symmetric_and_offset(self):
        inst = parse_tsp_text(_coord_instance("GEO", [(13.4, 52.5), (2.35, 48.85)]))
        d = inst.distance_table()
        assert d[0, 1] == pytest.approx(d[1, 0])
        assert d[0, 1] > 1.0
        assert d[0, 0] == 0.0

    def test_lowercase_weight_type_accepted(self):
        inst = parse_tsp_text(_coord_instance("euc_2d", SQUARE))
        assert inst.edge_weight_type is EdgeWeightType.EUC_2D

    def test_comments_are_joined(self):
        text = "COMMENT : first\nCOMMENT : second\n" + _coord_instance("EUC_2D", SQUARE)
        assert parse_tsp_text(text).comment == "first; second"

    def test_eof_stops_reading(self):
        text = _coord_instance("EUC_2D", SQUARE) + "garbage that is never read\n"
        assert parse_tsp_text(text).dimension == 4

    def test_display_section_returns_to_header(self):
        text = (
            "NAME : d\nDIMENSION : 2\nEDGE_WEIGHT_TYPE : EUC_2D\n"
            "NODE_COORD_SECTION\n1 0 0\n2 3 4\n"
            "DISPLAY_DATA_SECTION\n1 0 0\n2 3 4\nEOF\n"
        )
        assert parse_tsp_text(text).distance(0, 1) == pytest.approx(5.0)

    def test_distance_out_of_bounds_raises(self):
        inst = parse_tsp_text(_coord_instance("EUC_2D", SQUARE))
        with pytest.raises(IndexError):
            inst.distance(0, 4)

    def test_base_name(self):
        inst = parse_tsp_text(_coord_instance("EUC_2D", SQUARE, name="berlin52.tsp"))
        assert inst.base_name == "berlin52"

    def test_parse_file(self, tmp_path: Path):
        path = tmp_path / "square.tsp"
        path.write_text(_coord_instance("EUC_2D", SQUARE), encoding="utf-8")
        assert parse_tsp_file(path).dimension == 4


# ─────────────────────────────────────────────────────────────────────────────
# Group 2 — EXPLICIT instances
# ─────────────────────────────────────────────────────────────────────────────

class TestExplicitInstances:

    def test_full_matrix(self):
        body = "0 1 2\n3 0 4\n5 6 0"
        inst = parse_tsp_text(_explicit_instance("FULL_MATRIX", 3, body))
        assert inst.edge_weight_format is EdgeWeightFormat.FULL_MATRIX
        assert inst.node_coords is None
        assert inst.distance_table().tolist() == [[0, 1, 2], [3, 0, 4], [5, 6, 0]]

    def test_upper_row(self):
        inst = parse_tsp_text(_explicit_instance("UPPER_ROW", 3, "1 2\n4"))
        assert inst.distance_table().tolist() == [[0, 1, 2], [1, 0, 4], [2, 4, 0]]

    def test_lower_diag_row(self):
        inst = parse_tsp_text(_explicit_instance("LOWER_DIAG_ROW", 3, "0 1 0 2 4 0"))
        assert inst.distance_table().tolist() == [[0, 1, 2], [1, 0, 4], [2, 4, 0]]

    def test_weight_count_mismatch(self):
        with pytest.raises(TsplibParseError, match="FULL_MATRIX"):
            parse_tsp_text(_explicit_instance("FULL_MATRIX", 3, "0 1 2 3"))
        with pytest.raises(TsplibParseError, match="UPPER_ROW"):
            parse_tsp_text(_explicit_instance("UPPER_ROW", 3, "1 2"))

    def test_missing_format(self):
        text = (
            "NAME : x\nDIMENSION : 2\nEDGE_WEIGHT_TYPE : EXPLICIT\n"
            "EDGE_WEIGHT_SECTION\n0 1 1 0\nEOF\n"
        )
        with pytest.raises(TsplibParseError, match="EDGE_WEIGHT_FORMAT missing"):
            parse_tsp_text(text)

    def test_unsupported_format(self):
        with pytest.raises(TsplibParseError, match="Unsupported"):
            parse_tsp_text(_explicit_instance("UPPER_COL", 2, "1"))

    def test_invalid_weight_token(self):
        with pytest.raises(TsplibParseError, match="L7"):
            parse_tsp_text(_explicit_instance("UPPER_ROW", 2, "abc"))


# ─────────────────────────────────────────────────────────────────────────────
# Group 3 — Malformed input
# ─────────────────────────────────────────────────────────────────────────────

class TestMalformedInput:

    def test_missing_dimension(self):
        with pytest.raises(TsplibParseError, match="DIMENSION"):
            parse_tsp_text("NAME : x\nEDGE_WEIGHT_TYPE : EUC_2D\nEOF\n")

    def test_invalid_dimension(self):
        with pytest.raises(TsplibParseError, match="L2: Invalid dimension"):
            parse_tsp_text("NAME : x\nDIMENSION : many\n")

    def test_unknown_weight_type(self):
        with pytest.raises(TsplibParseError, match="Unknown edge weight type"):
            parse_tsp_text(_coord_instance("MAN_3D", SQUARE))

    def test_coordinate_count_mismatch(self):
        text = (
            "NAME : x\nDIMENSION : 3\nEDGE_WEIGHT_TYPE : EUC_2D\n"
            "NODE_COORD_SECTION\n1 0 0\n2 1 1\nEOF\n"
        )
        with pytest.raises(TsplibParseError, match="Mismatch"):
            parse_tsp_text(text)

    def test_extra_coordinates(self):
        text = (
            "NAME : x\nDIMENSION : 1\nEDGE_WEIGHT_TYPE : EUC_2D\n"
            "NODE_COORD_SECTION\n1 0 0\n2 1 1\nEOF\n"
        )
        with pytest.raises(TsplibParseError, match="Unexpected data"):
            parse_tsp_text(text)

    def test_malformed_node_line(self):
        text = (
            "NAME : x\nDIMENSION : 2\nEDGE_WEIGHT_TYPE : EUC_2D\n"
            "NODE_COORD_SECTION\n1 0\n2 1 1\nEOF\n"
        )
        with pytest.raises(TsplibParseError, match="L5: Malformed node coord line"):
            parse_tsp_text(text)

    def test_invalid_coordinate(self):
        text = (
            "NAME : x\nDIMENSION : 1\nEDGE_WEIGHT_TYPE : EUC_2D\n"
            "NODE_COORD_SECTION\n1 zero 0\nEOF\n"
        )
        with pytest.raises(TsplibParseError, match="x/lon"):
            parse_tsp_text(text)

    def test_section_change_before_all_coordinates(self):
        text = (
            "NAME : x\nDIMENSION : 3\nEDGE_WEIGHT_TYPE : EUC_2D\n"
            "NODE_COORD_SECTION\n1 0 0\nTOUR_SECTION\nEOF\n"
        )
        with pytest.raises(TsplibParseError, match="before all node coordinates"):
            parse_tsp_text(text)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(TsplibParseError, match="Failed to open"):
            parse_tsp_file(tmp_path / "nope.tsp")

    def test_parse_error_is_value_error(self):
        assert issubclass(TsplibParseError, ValueError)


# ─────────────────────────────────────────────────────────────────────────────
# Group 4 — Known-optimal solutions
# ─────────────────────────────────────────────────────────────────────────────

class TestSolutions:

    def test_load_and_normalise_names(self, tmp_path: Path):
        path = tmp_path / "solutions"
        path.write_text(
            "Berlin52 : 7542\n"
            "gr17 (explicit) : 2085 (exact)\n"
            "this line has no separator\n"
            "\n",
            encoding="utf-8",
        )
        table = load_optimal_solutions(path)
        assert table == {"berlin52": 7542.0, "gr17": 2085.0}

    def test_invalid_value_raises(self, tmp_path: Path):
        path = tmp_path / "solutions"
        path.write_text("a280 : lots\n", encoding="utf-8")
        with pytest.raises(SolutionsFileError, match="a280"):
            load_optimal_solutions(path)

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(SolutionsFileError):
            load_optimal_solutions(tmp_path / "missing")

    def test_evaluate_known_instance(self):
        optimal, gap = evaluate_solution("Berlin52", 7917.0, {"berlin52": 7542.0})
        assert optimal == 7542.0
        assert gap == pytest.approx((7917.0 - 7542.0) / 7542.0 * 100.0)

    def test_evaluate_unknown_instance(self):
        assert evaluate_solution("eil51", 430.0, {"berlin52": 7542.0}) == (None, None)

    def test_evaluate_zero_optimum(self):
        assert evaluate_solution("z", 0.0, {"z": 0.0}) == (0.0, 0.0)
        assert evaluate_solution("z", 3.0, {"z": 0.0}) == (0.0, math.inf)
