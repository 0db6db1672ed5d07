import json

import cv2
import pytest

from grainscope import main as cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


@pytest.fixture
def circle_png(tmp_path, blurred_circle_image):
    path = tmp_path / "grano.png"
    cv2.imwrite(str(path), cv2.cvtColor(blurred_circle_image, cv2.COLOR_RGB2BGR))
    return path


def test_full_run_writes_outputs(tmp_path, circle_png, capsys):
    out = tmp_path / "out"
    code = cli.main([str(circle_png), "-o", str(out), "--csv"])

    assert code == 0
    for name in ("grano_restored.png", "grano_annotated.png",
                 "grano_objects.csv", "grano_regions.csv", "report.json"):
        assert (out / name).exists(), name

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line['status'] == "OK"
    assert line['restored_count'] >= 1

    report = json.loads((out / "report.json").read_text(encoding="utf-8"))
    assert len(report) == 1


def test_assess_only(tmp_path, circle_png, capsys):
    out = tmp_path / "out"
    assert cli.main([str(circle_png), "-o", str(out), "--assess-only"]) == 0
    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert 'blur_score' in line
    assert not (out / "grano_annotated.png").exists()


def test_unreadable_and_unsupported_files_fail(tmp_path):
    bad = tmp_path / "roto.png"
    bad.write_bytes(b"no es una imagen")
    other = tmp_path / "notas.txt"
    other.write_text("x")
    assert cli.main([str(bad), str(other), "-o", str(tmp_path / "out")]) == 1


def test_read_image_rgb_converts_channel_order(tmp_path):
    import numpy as np
    bgr = np.zeros((4, 4, 3), dtype=np.uint8)
    bgr[..., 0] = 255  # azul en BGR
    path = tmp_path / "azul.png"
    cv2.imwrite(str(path), bgr)
    rgb = cli.read_image_rgb(str(path))
    assert tuple(rgb[0, 0]) == (0, 0, 255)
