from __future__ import annotations

import pandas as pd
import pytest

from admixtools_toolkit.errors import ParseError
from admixtools_toolkit.parsers import (
    parse_qp3pop,
    parse_qpadm,
    parse_qpdstat,
    parse_qpf4ratio,
    parse_qpwave,
    read_log,
)


@pytest.fixture
def log(data_dir):
    return lambda name: read_log(data_dir / name)


class TestQpDstat:
    def test_d(self, log):
        df = parse_qpdstat(log("qpdstat.log"))
        assert list(df.columns) == ["W", "X", "Y", "Z", "D", "stderr", "Zscore", "BABA", "ABBA", "nsnps"]
        assert df["Z"].tolist() == ["Yoruba", "Mbuti"]
        assert df.loc[0, "D"] == pytest.approx(0.0123)
        assert df.loc[1, "Zscore"] == pytest.approx(-1.5)
        assert df.loc[0, "nsnps"] == 482341

    def test_f4mode_names_column(self, log):
        df = parse_qpdstat(log("qpdstat_f4.log"), f4mode=True)
        assert "f4" in df.columns and "D" not in df.columns
        assert df.loc[0, "f4"] == pytest.approx(0.000412)

    def test_no_result_lines(self, log):
        with pytest.raises(ParseError, match="result:"):
            parse_qpdstat(log("fatal.log"))

    def test_truncated_line(self):
        with pytest.raises(ParseError, match="Truncated"):
            parse_qpdstat("result: French Han Yoruba Chimp 0.1 0.01\n")

    def test_non_numeric_field(self):
        with pytest.raises(ParseError, match="nan-ish"):
            parse_qpdstat("result: French Han Yoruba Chimp nan-ish 0.01 1.0 10 10 100\n")

    def test_best_marker_dropped(self):
        df = parse_qpdstat(
            "result: French Sardinian Han Yoruba 0.0123 0.0041 3.000 best 12045 11920 482341\n"
            "result: French Sardinian Han Mbuti -0.0051 0.0034 -1.500 11800 11921 482001\n"
        )
        assert df["Zscore"].tolist() == pytest.approx([3.0, -1.5])
        assert df["BABA"].tolist() == [12045, 11800]
        assert df.loc[0, "nsnps"] == 482341

    def test_nodata_quadruples_skipped(self, log):
        df = parse_qpdstat(log("qpdstat.log"))
        assert len(df) == 2
        assert "Chimp" not in df["Z"].tolist()

    def test_all_nodata(self):
        with pytest.raises(ParseError, match="nodata"):
            parse_qpdstat("result: French Sardinian Han Mbuti nodata\n")


class TestQp3Pop:
    def test_f3(self, log):
        df = parse_qp3pop(log("qp3pop.log"))
        assert df.to_dict("records") == [{
            "A": "French", "B": "Han", "C": "Karitiana",
            "f3": -0.012345, "stderr": 0.002, "Zscore": -6.173, "nsnps": 200345,
        }]

    def test_empty(self):
        with pytest.raises(ParseError):
            parse_qp3pop("")


class TestQpF4ratio:
    def test_alpha(self, log):
        df = parse_qpf4ratio(log("qpf4ratio.log"))
        assert df.loc[0, ["A", "B", "X", "C", "O"]].tolist() == ["Yoruba", "Han", "French", "Mbuti", "Chimp"]
        assert df.loc[0, "alpha"] == pytest.approx(0.254)
        assert df.loc[0, "Zscore"] == pytest.approx(6.195)


class TestQpAdm:
    def test_proportions(self, log):
        res = parse_qpadm(log("qpadm.log"))
        prop = res["proportions"]
        assert list(prop.columns) == [
            "target", "Sardinian", "Han", "stderr_Sardinian", "stderr_Han",
            "nsnps_used", "nsnps_target", "pvalue",
        ]
        row = prop.iloc[0]
        assert row["target"] == "French"
        assert row["Sardinian"] == pytest.approx(0.812)
        assert row["stderr_Han"] == pytest.approx(0.032)
        assert row["nsnps_used"] == 350101
        assert row["nsnps_target"] == 348001
        assert row["pvalue"] == pytest.approx(0.420133)

    def test_ranks(self, log):
        ranks = parse_qpadm(log("qpadm.log"))["ranks"]
        assert ranks["rank"].tolist() == [1, 2]
        assert ranks.loc[0, "chisqdiff"] == pytest.approx(256.12)
        assert ranks.loc[1, "tail"] == 1.0

    def test_subsets(self, log):
        subsets = parse_qpadm(log("qpadm.log"))["subsets"]
        assert subsets["pattern"].tolist() == ["00", "01", "10"]
        assert subsets["feasible"].tolist() == [True, False, True]
        assert subsets.loc[1, "Sardinian"] == pytest.approx(1.104)
        assert subsets.loc[2, "dof"] == 3

    def test_missing_blocks(self, log):
        with pytest.raises(ParseError, match="left pops"):
            parse_qpadm(log("fatal.log"))

    def test_missing_coefficients(self, log):
        text = log("qpadm.log").replace("best coefficients:", "best coeffs:")
        with pytest.raises(ParseError, match="best coefficients"):
            parse_qpadm(text)

    def test_coefficient_count_mismatch(self, log):
        text = log("qpadm.log").replace("std. errors:     0.032     0.032", "std. errors:     0.032")
        with pytest.raises(ParseError, match="sources"):
            parse_qpadm(text)


class TestQpWave:
    def test_ranks(self, log):
        ranks = parse_qpwave(log("qpwave.log"))
        assert isinstance(ranks, pd.DataFrame)
        assert ranks["rank"].tolist() == [0, 1, 2]
        assert ranks.loc[0, "tail"] == pytest.approx(2.1e-62)
        assert pd.isna(ranks.loc[0, "dofdiff"])
        assert pd.isna(ranks.loc[0, "chisqdiff"])
        assert ranks.loc[1, "dofdiff"] == 4

    def test_details(self, log):
        res = parse_qpwave(log("qpwave.log"), details=True)
        assert sorted(res) == ["A", "B", "ranks"]
        assert sorted(res["B"]) == [1, 2]
        assert res["B"][1].index.tolist() == ["scale", "Yoruba", "Papuan", "Chimp"]
        assert res["B"][2].shape == (4, 2)
        assert res["A"][2].loc["scale", 1] == pytest.approx(120.03)
        assert res["A"][1].loc["Han", 0] == pytest.approx(-0.534)

    def test_no_rank_lines(self, log):
        with pytest.raises(ParseError, match="f4rank"):
            parse_qpwave(log("qpdstat.log"))

    def test_details_without_matrices(self):
        text = "f4rank: 0 dof:      6 chisq:   301.412 tail:         2.1e-62\n"
        assert len(parse_qpwave(text)) == 1
        with pytest.raises(ParseError, match="matrix"):
            parse_qpwave(text, details=True)
