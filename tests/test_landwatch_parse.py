from bs4 import BeautifulSoup

from landbot.adapters.sources.landwatch import LISTING_SELECTOR, build_search_url, parse_listing_card
from landbot.domain.property import generate_property_id

PAGE = """
<html><body>
<div data-qa-listing="1">
  <a href="/lewis-and-clark-county-montana-land-for-sale/pid/412345678">160 Acre Ranch with Pond</a>
  <span>$1,150,000</span>
  <span>160.5 acres</span>
  <div data-qa-placard-location>Helena, MT 59601, Lewis and Clark County</div>
  <p data-qa-placard-description>Open pasture and stock pond. MLS# 30055555</p>
</div>
<div data-qa-listing="2">
  <a href="https://www.landwatch.com/granite-county-montana-land-for-sale/pid/499">Creek Lot</a>
  <span>Price upon request</span>
</div>
<div data-qa-listing="3">
  <span>Sponsored</span>
</div>
</body></html>
"""


def _cards():
    return BeautifulSoup(PAGE, "lxml").select(LISTING_SELECTOR)


def test_build_search_url_encodes_filters_in_path():
    assert build_search_url("MT") == "https://www.landwatch.com/montana-land-for-sale"
    assert (
        build_search_url("mt", max_price=1200000, min_acres=20)
        == "https://www.landwatch.com/montana-land-for-sale/price-0-1200000/acres-20-99999"
    )
    assert (
        build_search_url("NM", min_price=50000, max_price=250000, min_acres=5.5, max_acres=40)
        == "https://www.landwatch.com/new-mexico-land-for-sale/price-50000-250000/acres-5.5-40"
    )


def test_parse_full_card():
    p = parse_listing_card(_cards()[0], state="MT")
    assert p is not None
    assert p.source == "landwatch"
    assert p.source_id == "412345678"
    assert p.id == generate_property_id("landwatch", "412345678")
    assert p.url == "https://www.landwatch.com/lewis-and-clark-county-montana-land-for-sale/pid/412345678"
    assert p.title == "160 Acre Ranch with Pond"
    assert p.price == 1150000
    assert p.acres == 160.5
    assert p.city == "Helena"
    assert p.county == "Lewis and Clark"
    assert p.state == "MT"
    assert "MLS# 30055555" in p.description
    assert p.raw_data["price"] == "$1,150,000"


def test_parse_sparse_card_keeps_missing_values_empty():
    p = parse_listing_card(_cards()[1], state="MT")
    assert p is not None
    assert p.source_id == "499"
    assert p.url.startswith("https://www.landwatch.com/")
    assert p.price is None
    assert p.acres is None
    assert p.description is None


def test_card_without_listing_link_is_skipped():
    assert parse_listing_card(_cards()[2], state="MT") is None
