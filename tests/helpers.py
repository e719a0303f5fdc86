"""Test helpers — envelope builders and canned form values."""

from datetime import datetime, timezone

BASE_URL = "http://test"
FIXED_NOW = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def envelope(data=None, message="OK", success=True, **extra) -> dict:
    return {"success": success, "message": message, "data": data, **extra}


def complete_profile_values(**overrides) -> dict:
    values = {
        "first_name": "Ayesha",
        "middle_name": "",
        "last_name": "Khan",
        "address": "12 Mall Road, Lahore",
        "primary_lang": "ur",
        "citizen": "PK",
        "cnic": "35202-1234567-1",
        "gender": "Female",
        "dob": "2004-02-11",
        "marital_status": "Unmarried",
        "phone": "03001234567",
        "photo_name": "me.jpg",
        "photo_bytes": 120_000,
    }
    values.update(overrides)
    return values


def complete_family_values(**overrides) -> dict:
    values = {
        "father_name": "Imran Khan",
        "mother_name": "Sara Khan",
        "father_occupation": "govt",
    }
    values.update(overrides)
    return values


def complete_education_values(**overrides) -> dict:
    values = {
        "matric_grades": "A+",
        "matric_pic_name": "matric.png",
        "fsc_grades": "A",
        "fsc_pic_name": "fsc.png",
        "college_name": "Government College Lahore",
    }
    values.update(overrides)
    return values
