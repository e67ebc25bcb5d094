"""Image/description save pipeline against a real SQLite store."""

import base64

import pytest

from conftest import png_data_url
from pixshop.core.errors import InvalidInput, InvalidSlot, NotFound, WriteFailed
from pixshop.db.models.product import Product, ProductStatus
from pixshop.services.fulfillment_store import ProductFulfillmentStore
from pixshop.services.product_updates import (
    decode_image_data_url,
    save_product_description,
    save_product_image,
)


class TestDecodeImageDataUrl:
    def test_png(self):
        data, image_format = decode_image_data_url(png_data_url(b"abc"))
        assert data == b"abc"
        assert image_format == "png"

    def test_jpg_normalized_to_jpeg(self):
        url = "data:image/jpg;base64," + base64.b64encode(b"jpg").decode()
        assert decode_image_data_url(url) == (b"jpg", "jpeg")

    @pytest.mark.parametrize(
        "url",
        [
            "not a data url",
            "data:text/plain;base64,aGVsbG8=",
            "data:image/png,rawbytes",
            "data:image/png;base64,@@@not-base64@@@",
            "data:image/png;base64,",
            "data:image/tiff;base64,aGVsbG8=",
        ],
    )
    def test_rejects_malformed(self, url):
        with pytest.raises(InvalidInput):
            decode_image_data_url(url)


def test_image_save_writes_file_and_slot(db, make_product, assets, no_lock):
    make_product()
    store = ProductFulfillmentStore(db)

    result = save_product_image(
        store, assets, no_lock, sku=1001, image_type="Wax", image_data_url=png_data_url(b"wax")
    )

    assert result.message == "Image for SKU 1001 saved as Wax successfully."
    assert result.product.wax_image_url == "http://testserver/images/1001_Wax.png"
    assert (assets.images_dir / "1001_Wax.png").read_bytes() == b"wax"
    assert result.fulfilled_now is False


def test_repeated_image_save_overwrites_same_file(db, make_product, assets, no_lock):
    make_product()
    store = ProductFulfillmentStore(db)

    first = save_product_image(
        store, assets, no_lock, sku=1001, image_type="Cast", image_data_url=png_data_url(b"one")
    )
    first_url = first.product.cast_image_url
    second = save_product_image(
        store, assets, no_lock, sku=1001, image_type="Cast", image_data_url=png_data_url(b"two")
    )

    assert second.product.cast_image_url == first_url
    assert (assets.images_dir / "1001_Cast.png").read_bytes() == b"two"
    assert len(list(assets.images_dir.iterdir())) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sku": None, "image_type": "Wax", "image_data_url": png_data_url()},
        {"sku": 1001, "image_type": None, "image_data_url": png_data_url()},
        {"sku": 1001, "image_type": "Wax", "image_data_url": None},
        {"sku": 1001, "image_type": "Wax", "image_data_url": "http://example.com/a.png"},
    ],
)
def test_image_save_rejects_missing_input(db, make_product, assets, no_lock, kwargs):
    make_product()
    with pytest.raises(InvalidInput):
        save_product_image(ProductFulfillmentStore(db), assets, no_lock, **kwargs)
    assert list(assets.images_dir.iterdir()) == []


def test_unknown_sku_is_not_created(db, assets, no_lock):
    store = ProductFulfillmentStore(db)
    with pytest.raises(NotFound):
        save_product_image(
            store, assets, no_lock, sku=4242, image_type="Wax", image_data_url=png_data_url()
        )
    assert db.query(Product).count() == 0
    assert list(assets.images_dir.iterdir()) == []


def test_unknown_image_type_writes_nothing(db, make_product, assets, no_lock):
    make_product()
    store = ProductFulfillmentStore(db)
    with pytest.raises(InvalidSlot):
        save_product_image(
            store, assets, no_lock, sku=1001, image_type="Pre", image_data_url=png_data_url()
        )
    assert list(assets.images_dir.iterdir()) == []
    assert store.find(1001).pre_image_url is None


def test_failed_image_write_leaves_product_untouched(db, make_product, assets, no_lock, monkeypatch):
    make_product()
    store = ProductFulfillmentStore(db)

    def broken_write(filename, image_bytes):
        raise WriteFailed("Failed to write image file: disk full")

    monkeypatch.setattr(assets, "_write", broken_write)
    with pytest.raises(WriteFailed):
        save_product_image(
            store, assets, no_lock, sku=1001, image_type="Final", image_data_url=png_data_url()
        )

    db.expire_all()
    assert store.find(1001).final_image_url is None


def test_description_save(db, make_product, no_lock):
    make_product()
    result = save_product_description(
        ProductFulfillmentStore(db), no_lock, sku=1001, desc_type="Cast", description="  Cast in silver.  "
    )
    assert result.message == "Description for SKU 1001 saved as Cast successfully."
    assert result.product.cast_description == "Cast in silver."


def test_description_save_rejects_unknown_type(db, make_product, no_lock):
    make_product()
    with pytest.raises(InvalidSlot):
        save_product_description(
            ProductFulfillmentStore(db), no_lock, sku=1001, desc_type="Gold", description="text"
        )


def test_description_save_rejects_blank_text(db, make_product, no_lock):
    make_product()
    with pytest.raises(InvalidInput):
        save_product_description(
            ProductFulfillmentStore(db), no_lock, sku=1001, desc_type="Wax", description="   "
        )


def test_sku_1001_fulfillment_scenario(db, make_product, assets, no_lock):
    product = make_product(sku=1001)
    seeded_stamp = product.created_at
    store = ProductFulfillmentStore(db)

    def image(kind):
        return save_product_image(
            store, assets, no_lock, sku=1001, image_type=kind, image_data_url=png_data_url(kind.encode())
        )

    def description(kind):
        return save_product_description(
            store, no_lock, sku=1001, desc_type=kind, description=f"{kind} stage"
        )

    image("Wax")
    result = description("Wax")
    assert result.product.status == ProductStatus.PENDING.value

    for step in (lambda: image("Cast"), lambda: description("Cast"), lambda: image("Final")):
        result = step()
        assert result.fulfilled_now is False
        assert result.product.status == ProductStatus.PENDING.value
        assert result.product.created_at == seeded_stamp

    sixth = description("Final")
    assert sixth.fulfilled_now is True
    assert sixth.product.status == ProductStatus.FULFILLED.value
    fulfilled_stamp = sixth.product.created_at
    assert fulfilled_stamp != seeded_stamp

    seventh = image("Wax")
    assert seventh.fulfilled_now is False
    assert seventh.product.status == ProductStatus.FULFILLED.value
    assert seventh.product.created_at == fulfilled_stamp
