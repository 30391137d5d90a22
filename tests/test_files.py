from __future__ import annotations

from pathlib import Path

import pytest

from admixtools_toolkit.data import eigenstrat
from admixtools_toolkit.errors import ValidationError
from admixtools_toolkit.files import (
    append_par_options,
    get_files,
    write_leftright_pop_files,
    write_par_file,
    write_pop_file,
)
from tests.conftest import par_lines


class TestGetFiles:
    def test_flat_roles(self, tmp_path):
        files = get_files(tmp_path / "out", "qpDstat")
        assert list(files) == ["pop_file", "par_file", "log_file"]
        assert files.pop_roles == ["pop_file"]
        for path in files.values():
            assert Path(path).is_absolute()
            assert Path(path).parent == (tmp_path / "out").resolve()
            assert Path(path).name.startswith("qpDstat__")
            assert not Path(path).exists()
        stems = {Path(p).stem for p in files.values()}
        assert len(stems) == 1

    def test_leftright_roles(self, tmp_path):
        files = get_files(tmp_path, "qpAdm", leftright=True)
        assert files.pop_roles == ["popleft", "popright"]
        assert files["popleft"].endswith(".popleft")
        assert files["popright"].endswith(".popright")

    def test_default_outdir_created(self, tmp_path):
        files = get_files(None, "qpWave")
        assert (tmp_path / "runs").is_dir()
        assert Path(files["par_file"]).parent == (tmp_path / "runs").resolve()

    def test_prefixes_do_not_collide(self, tmp_path):
        seen = set()
        for _ in range(200):
            files = get_files(tmp_path, "qpDstat")
            assert files["par_file"] not in seen
            seen.add(files["par_file"])

    def test_existing_prefix_is_redrawn(self, tmp_path, monkeypatch):
        from admixtools_toolkit import files as files_mod

        draws = iter([7, 7, 8])
        monkeypatch.setattr(files_mod._rng, "randint", lambda a, b: next(draws))

        first = get_files(tmp_path, "qp3Pop")
        Path(first["log_file"]).write_text("taken")
        second = get_files(tmp_path, "qp3Pop")
        assert Path(first["par_file"]).name == "qp3Pop__7.par"
        assert Path(second["par_file"]).name == "qp3Pop__8.par"

    def test_outdir_cannot_be_created(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        with pytest.raises(OSError):
            get_files(blocker / "sub", "qpDstat")


class TestPopFiles:
    def test_one_label_per_line(self, tmp_path):
        path = tmp_path / "x.pop"
        write_pop_file(["A", "B", "C"], path)
        assert path.read_text().splitlines() == ["A", "B", "C"]

    def test_leftright(self, tmp_path):
        files = get_files(tmp_path, "qpWave", leftright=True)
        write_leftright_pop_files(["French", "Han"], ["Mbuti", "Chimp"], files)
        assert Path(files["popleft"]).read_text().splitlines() == ["French", "Han"]
        assert Path(files["popright"]).read_text().splitlines() == ["Mbuti", "Chimp"]

    def test_leftright_overlap_writes_nothing(self, tmp_path):
        files = get_files(tmp_path, "qpWave", leftright=True)
        with pytest.raises(ValidationError, match="Han"):
            write_leftright_pop_files(["French", "Han"], ["Han", "Chimp"], files)
        assert not Path(files["popleft"]).exists()
        assert not Path(files["popright"]).exists()


class TestParFile:
    def test_base_block_then_options(self, dataset, tmp_path):
        files = get_files(tmp_path, "qpDstat")
        write_par_file(files, dataset)
        append_par_options(files["par_file"], {"f4mode": "YES", "printsd": "YES"})

        assert par_lines(files["par_file"]) == [
            f"genotypename: {dataset.geno}",
            f"snpname: {dataset.snp}",
            f"indivname: {dataset.ind}",
            f"popfilename: {files['pop_file']}",
            "f4mode: YES",
            "printsd: YES",
        ]

    def test_leftright_keys(self, dataset, tmp_path):
        files = get_files(tmp_path, "qpAdm", leftright=True)
        write_par_file(files, dataset)
        lines = par_lines(files["par_file"])
        assert lines[3:] == [f"popleft: {files['popleft']}", f"popright: {files['popright']}"]

    def test_badsnpname_when_excluding(self, dataset_prefix, tmp_path):
        bad = tmp_path / "bad.snp"
        bad.write_text("rs2 1 0.0 2000 C A\n")
        data = eigenstrat(dataset_prefix, exclude=bad)
        files = get_files(tmp_path, "qp3Pop")
        write_par_file(files, data)
        assert par_lines(files["par_file"])[3] == f"badsnpname: {data.exclude}"

    def test_duplicate_key_refused(self, dataset, tmp_path):
        files = get_files(tmp_path, "qpWave", leftright=True)
        write_par_file(files, dataset)
        with pytest.raises(ValidationError, match="snpname"):
            append_par_options(files["par_file"], {"maxrank": 2, "snpname": "other.snp"})
        assert len(par_lines(files["par_file"])) == 5

    def test_no_options_is_noop(self, dataset, tmp_path):
        files = get_files(tmp_path, "qpF4ratio")
        write_par_file(files, dataset)
        append_par_options(files["par_file"], {})
        assert len(par_lines(files["par_file"])) == 4
