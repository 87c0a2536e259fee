"""Shared test fixtures for the catalog pipeline tests."""

import csv

import pytest


@pytest.fixture
def model_rows():
    """Models table rows as read from CSV (all cells are strings)."""
    return [
        {
            "model_id": "M1",
            "brand": "Acme",
            "model_name": "Volt",
            "model_year": "2025",
            "category": "hybrid",
            "use_cases": "commuting,leisure",
            "surfaces": "road,gravel",
            "frame_styles": "high-step,low-step",
            "motor_brand": "Bosch",
            "motor_system": "Performance Line",
            "motor_torque_nm": "65 Nm",
            "battery_default_wh": "500",
            "battery_removable": "true",
            "equipped_lights": "true",
            "equipped_mudguards": "true",
            "equipped_rear_rack": "true",
            "equipped_kickstand": "false",
            "equipped_chainguard": "false",
            "weight_kg": "24.5",
            "notes": "",
        },
        {
            "model_id": "M2",
            "brand": "Bolt",
            "model_name": "Trail X",
            "model_year": "2024",
            "category": "emtb",
            "use_cases": "trail",
            "surfaces": "trail",
            "motor_torque_nm": "85",
            "battery_default_wh": "750",
            "equipped_lights": "false",
            "weight_kg": "",
        },
    ]


@pytest.fixture
def sku_rows():
    """SKU table rows without mpn/gtin columns."""
    return [
        {"sku_id": "S1", "model_id": "M1", "frame_size_label": "M", "colour": "Blue", "battery_wh": ""},
        {"sku_id": "S2", "model_id": "M1", "frame_size_label": "L", "colour": "Blue", "battery_wh": "625 Wh"},
        {"sku_id": "S3", "model_id": "M2", "frame_size_label": "S", "colour": "Black", "battery_wh": ""},
    ]


@pytest.fixture
def retailer_rows():
    return [
        {
            "sku_id": "S1",
            "in_stock": "true",
            "price_rrp_gbp": "£2,199.00",
            "price_sale_gbp": "£1,999.00",
            "product_url": "https://shop.example/s1",
            "image_url": "https://shop.example/s1.jpg",
        },
        {
            "sku_id": "S2",
            "in_stock": "TRUE",
            "price_rrp_gbp": "2199",
            "price_sale_gbp": "",
            "product_url": "https://shop.example/s2",
            "image_url": "",
        },
        {
            "sku_id": "S3",
            "in_stock": "true",
            "price_rrp_gbp": "4,500",
            "price_sale_gbp": "",
            "product_url": "https://shop.example/s3",
            "image_url": "",
        },
    ]


def write_csv(path, rows):
    """Write row dicts to a CSV file using the union of their keys as header."""
    header = []
    for row in rows:
        for key in row:
            if key not in header:
                header.append(key)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=header, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return path


@pytest.fixture
def source_files(tmp_path, model_rows, sku_rows, retailer_rows):
    """The three sample tables written as CSV files."""
    return {
        "models": write_csv(tmp_path / "models.csv", model_rows),
        "skus": write_csv(tmp_path / "skus.csv", sku_rows),
        "retailer": write_csv(tmp_path / "retailer.csv", retailer_rows),
    }
