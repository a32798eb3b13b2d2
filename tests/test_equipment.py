from datetime import date, timedelta
from decimal import Decimal
import pytest
from fastapi import status

from app.models.equipment import Equipment, EquipmentCategory
from app.services import booking_engine, catalog
from app.utils.errors import InvalidDateRange, InvalidListing, NotFound

from tests.conf_tests import (
    client,
    clear_db,
    test_db,
    owner,
    renter,
    owner_headers,
    renter_headers,
    camera,
    make_equipment,
)

TODAY = date.today()

LISTING = {
    "title": "Sennheiser MKH 416",
    "description": "Shotgun microphone for film sets. Windshield and XLR cable included.",
    "category": "audio",
    "price_per_day": "32.00",
    "available_from": TODAY.isoformat(),
    "available_until": (TODAY + timedelta(days=20)).isoformat(),
    "location": "Hamburg",
}


@pytest.fixture
def catalog_items(test_db, owner):
    return [
        make_equipment(test_db, owner),
        make_equipment(
            test_db, owner,
            title="Aputure 300D Mark II",
            description="300W LED light with Fresnel attachment and stand.",
            category=EquipmentCategory.lighting,
        ),
        make_equipment(
            test_db, owner,
            title="DJI Ronin RS2",
            description="Three-axis gimbal for cameras up to 4.5kg.",
            category=EquipmentCategory.stabilizers,
        ),
    ]


# Tests
def test_create_equipment_unauthorized():
    response = client.post("/equipment/", json=LISTING)
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]


# pylint: disable-next=redefined-outer-name
def test_create_equipment_success(owner, owner_headers):
    response = client.post("/equipment/", json=LISTING, headers=owner_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["owner_id"] == owner.id
    assert data["category"] == "audio"
    assert Decimal(data["price_per_day"]) == Decimal("32")
    assert data["image_urls"] == []


# pylint: disable-next=redefined-outer-name
def test_create_equipment_invalid_window(owner_headers):
    listing = dict(LISTING, available_until=(TODAY - timedelta(days=1)).isoformat())
    response = client.post("/equipment/", json=listing, headers=owner_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["error_kind"] == "InvalidDateRange"


# pylint: disable-next=redefined-outer-name
def test_create_equipment_non_positive_price(owner_headers):
    listing = dict(LISTING, price_per_day="0")
    response = client.post("/equipment/", json=listing, headers=owner_headers)
    assert response.status_code == 422


# pylint: disable-next=redefined-outer-name
def test_create_equipment_service_validation(test_db, owner):
    with pytest.raises(InvalidListing):
        catalog.create_equipment(test_db, owner.id, " ", "desc", "audio", 10, TODAY, TODAY)
    with pytest.raises(InvalidListing):
        catalog.create_equipment(test_db, owner.id, "Mic", "desc", "audio", -1, TODAY, TODAY)
    with pytest.raises(InvalidDateRange):
        catalog.create_equipment(test_db, owner.id, "Mic", "desc", "audio", 10, TODAY, TODAY - timedelta(days=1))
    assert test_db.query(Equipment).count() == 0


# pylint: disable-next=redefined-outer-name
def test_search_matches_title_case_insensitively(test_db, catalog_items):
    assert [e.title for e in catalog.search_equipment(test_db, "sony")] == ["Sony Alpha 7S III"]
    assert catalog.search_equipment(test_db, "zzz") == []


# pylint: disable-next=redefined-outer-name
def test_search_matches_description_and_category_name(test_db, catalog_items):
    assert [e.title for e in catalog.search_equipment(test_db, "GIMBAL")] == ["DJI Ronin RS2"]
    # "Lighting" is the display name of the lighting category
    assert [e.title for e in catalog.search_equipment(test_db, "lighting")] == ["Aputure 300D Mark II"]
    # "cam" hits the "Cameras" category and the gimbal's description, in insertion order
    assert [e.title for e in catalog.search_equipment(test_db, "cam")] == ["Sony Alpha 7S III", "DJI Ronin RS2"]


# pylint: disable-next=redefined-outer-name
def test_search_folds_non_ascii_case(test_db, owner):
    make_equipment(
        test_db, owner,
        title="ÜBERKOPF Stativ",
        description="Schweres Stativ für Überkopf-Aufnahmen.",
        category=EquipmentCategory.rigging,
    )
    assert [e.title for e in catalog.search_equipment(test_db, "überkopf")] == ["ÜBERKOPF Stativ"]
    assert [e.title for e in catalog.search_equipment(test_db, "FÜR")] == ["ÜBERKOPF Stativ"]


# pylint: disable-next=redefined-outer-name
def test_search_treats_wildcards_literally(test_db, catalog_items):
    assert catalog.search_equipment(test_db, "%") == []
    assert catalog.search_equipment(test_db, "_") == []


# pylint: disable-next=redefined-outer-name
def test_blank_search_and_category_filter(test_db, catalog_items):
    assert [e.id for e in catalog.search_equipment(test_db, "  ")] == [e.id for e in catalog_items]
    assert [e.title for e in catalog.filter_by_category(test_db, EquipmentCategory.lighting)] == ["Aputure 300D Mark II"]
    assert len(catalog.filter_by_category(test_db, None)) == 3


# pylint: disable-next=redefined-outer-name
def test_list_equipment_api(catalog_items):
    response = client.get("/equipment/?q=sony")
    assert response.status_code == status.HTTP_200_OK
    assert [e["title"] for e in response.json()] == ["Sony Alpha 7S III"]

    response = client.get("/equipment/?category=stabilizers")
    assert [e["title"] for e in response.json()] == ["DJI Ronin RS2"]

    response = client.get("/equipment/?q=zzz")
    assert response.json() == []


# pylint: disable-next=redefined-outer-name
def test_get_equipment(camera):
    response = client.get(f"/equipment/{camera.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["title"] == camera.title
    assert data["location"] == "Berlin"


def test_get_equipment_not_found():
    response = client.get("/equipment/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"]["error_kind"] == "NotFound"


# pylint: disable-next=redefined-outer-name
def test_archive_equipment(test_db, camera, owner_headers, renter_headers):
    response = client.delete(f"/equipment/{camera.id}", headers=renter_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.delete(f"/equipment/{camera.id}", headers=owner_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    with pytest.raises(NotFound):
        catalog.get_equipment(test_db, camera.id)
    assert catalog.search_equipment(test_db, "sony") == []
    assert client.get(f"/equipment/{camera.id}").status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_availability_gaps(test_db, camera, renter):
    booking_engine.request_booking(
        test_db, camera.id, renter.id, TODAY + timedelta(days=5), TODAY + timedelta(days=7)
    )
    response = client.get(f"/equipment/{camera.id}/availability")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [
        {"start_date": TODAY.isoformat(), "end_date": (TODAY + timedelta(days=4)).isoformat()},
        {"start_date": (TODAY + timedelta(days=8)).isoformat(), "end_date": (TODAY + timedelta(days=60)).isoformat()},
    ]


# pylint: disable-next=redefined-outer-name
def test_contact_owner(camera, owner, owner_headers, renter, renter_headers):
    response = client.post(
        f"/equipment/{camera.id}/contact",
        json={"sender_id": renter.id, "text": "Is a deposit required?"},
        headers=renter_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["sender_id"] == renter.id

    response = client.get(f"/conversations/?user_id={owner.id}", headers=owner_headers)
    [conversation] = response.json()
    assert conversation["equipment_id"] == camera.id
    assert conversation["last_message"] == "Is a deposit required?"


# pylint: disable-next=redefined-outer-name
def test_contact_owner_empty_message(camera, owner, owner_headers, renter, renter_headers):
    response = client.post(
        f"/equipment/{camera.id}/contact",
        json={"sender_id": renter.id, "text": "  "},
        headers=renter_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    # No conversation is opened for a rejected first message
    assert client.get(f"/conversations/?user_id={owner.id}", headers=owner_headers).json() == []
