from landbot.domain.property import field_completeness, generate_property_id, properties_differ
from landbot.domain.types import Coordinates, Structures, Utilities, WaterFeatures
from fakes import make_property


def test_property_id_is_stable_and_distinct():
    a = generate_property_id("landwatch", "12345")
    assert a == generate_property_id("landwatch", "12345")
    assert len(a) == 16
    int(a, 16)  # hex

    assert a != generate_property_id("landwatch", "12346")
    assert a != generate_property_id("stub_json", "12345")


def test_property_id_many_pairs_do_not_collide():
    ids = {generate_property_id(src, str(n)) for src in ("a", "b", "c") for n in range(2000)}
    assert len(ids) == 6000


def test_completeness_counts_base_identity_fields():
    bare = make_property()
    assert field_completeness(bare) == 5


def test_completeness_never_decreases_when_fields_are_added():
    p = make_property()
    additions = [
        ("description", "Nice parcel"),
        ("acres", 40.0),
        ("price", 250000.0),
        ("state", "MT"),
        ("county", "Granite"),
        ("city", "Philipsburg"),
        ("address", "1 Creek Rd"),
        ("coordinates", Coordinates(46.3, -113.3)),
        ("water_features", WaterFeatures(has_water=True, types=["creek"], year_round=True)),
        ("structures", Structures(has_structures=True, type="cabin", count=1)),
        ("utilities", Utilities(power=True, internet=False)),
        ("distance_to_town_minutes", 20.0),
        ("terrain_tags", ["forested"]),
        ("images", ["https://example.com/1.jpg"]),
    ]

    last = field_completeness(p)
    for name, value in additions:
        setattr(p, name, value)
        now = field_completeness(p)
        assert now >= last, name
        last = now

    assert last > 5


def test_nested_water_details_add_to_completeness():
    dry = make_property(water_features=WaterFeatures(has_water=True))
    wet = make_property(water_features=WaterFeatures(has_water=True, types=["pond"], year_round=False))
    assert field_completeness(wet) == field_completeness(dry) + 2


def test_raw_payload_and_calculated_fields_do_not_count_as_changes():
    a = make_property(price=100000.0, raw_data={"x": 1})
    b = make_property(price=100000.0, raw_data={"x": 2}, score=12.5, field_completeness=9)
    assert not properties_differ(a, b)

    c = make_property(price=100000.0, coordinates=Coordinates(1.0, 2.0))
    d = make_property(price=100000.0, coordinates=Coordinates(1.0, 2.5))
    assert properties_differ(c, d)
