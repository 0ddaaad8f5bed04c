from pathlib import Path
import sys

from PIL import Image

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from scripts.make_image import main


def test_render_from_coefficients(tmp_path, capsys):
    out = tmp_path / "cubic.png"
    rc = main(["--coeffs", "-1", "0", "0", "1", "--width", "64", "--height", "48",
               "--scale", "0.05", "--outfile", str(out)])
    assert rc == 0

    im = Image.open(out)
    assert im.size == (64, 48)
    assert im.mode == "RGBA"

    printed = capsys.readouterr().out
    assert "z^3 - 1" in printed
    assert "converged=True" in printed


def test_render_from_roots_with_radial_policy(tmp_path, capsys):
    out = tmp_path / "nested" / "roots.png"
    rc = main(["--roots", "1,-1,2i", "--leading", "2", "--policy", "radial",
               "--falloff", "80", "--width", "40", "--height", "40", "--outfile", str(out)])
    assert rc == 0
    assert out.exists()
    assert "radial" in capsys.readouterr().out


def test_constant_input_still_renders(tmp_path, capsys):
    out = tmp_path / "const.png"
    assert main(["--coeffs", "3", "--width", "16", "--height", "16", "--outfile", str(out)]) == 0
    assert "no roots" in capsys.readouterr().out
    assert out.exists()


def test_comma_separated_coefficients_with_leading_minus(tmp_path, capsys):
    out = tmp_path / "cubic.png"
    rc = main(["--coeffs=-1,0,0,1", "--width", "16", "--height", "16", "--outfile", str(out)])
    assert rc == 0
    assert "z^3 - 1" in capsys.readouterr().out


def test_space_separated_roots_with_negatives(tmp_path, capsys):
    out = tmp_path / "roots.png"
    rc = main(["--roots", "1", "-1", "--width", "16", "--height", "16", "--outfile", str(out)])
    assert rc == 0
    assert "z^2 - 1" in capsys.readouterr().out
