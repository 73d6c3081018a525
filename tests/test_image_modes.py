from PIL import Image

from listingstamp.render.image_modes import cover_crop_box, cover_fit_image


def test_cover_crop_box_trims_the_longer_axis_symmetrically() -> None:
    assert cover_crop_box(4000, 3000, 1080, 860) == (116, 0, 3883, 3000)
    assert cover_crop_box(1000, 2000, 100, 100) == (0, 500, 1000, 1500)
    assert cover_crop_box(800, 400, 200, 100) == (0, 0, 800, 400)


def test_cover_fit_image_fills_the_box() -> None:
    image = Image.new("RGB", (400, 100), color="#ff0000")
    fitted = cover_fit_image(image, (100, 100))
    assert fitted.size == (100, 100)
    assert fitted.convert("RGB").getpixel((50, 50)) == (255, 0, 0)
