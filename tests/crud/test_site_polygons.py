from datetime import datetime

from clipping_api.crud.site_polygons import generate_version_name


def test_version_name_with_user():
    now = datetime(2025, 11, 10, 14, 30, 45)

    assert (
        generate_version_name("North_Field", "Jane Doe", now)
        == "North_Field_10_November_2025_14_30_45_Jane Doe"
    )


def test_version_name_pads_time_but_not_day():
    now = datetime(2025, 3, 4, 5, 6, 7)

    assert generate_version_name("Plot", None, now) == "Plot_4_March_2025_05_06_07"


def test_version_name_for_unnamed_polygon():
    now = datetime(2025, 11, 10, 14, 30, 45)

    assert generate_version_name(None, "", now) == "Unnamed_10_November_2025_14_30_45"
