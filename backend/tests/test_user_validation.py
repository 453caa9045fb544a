# 사용자 입력 검증 유닛 테스트 (DB 의존성 없음)
import pytest

from app.core.exceptions import FieldValidationError, MalformedRequestError
from app.services.user_validation import validate_hobby, validate_object_id, validate_user

DOMAINS = {"tempmail.com", "throwaway.com"}


def _errors(candidate, mode="create"):
    with pytest.raises(FieldValidationError) as exc:
        validate_user(candidate, mode=mode, disposable_domains=DOMAINS)
    return exc.value.errors


@pytest.mark.parametrize("name", ["Ann Lee", "O'Brien", "Jean-Luc Picard", "ab", "a" * 100])
def test_valid_names_accepted(name):
    data = validate_user({"name": name, "email": "ann@example.com"}, disposable_domains=DOMAINS)
    assert data["name"] == name


@pytest.mark.parametrize(
    "name, message",
    [
        ("a", "Name must be at least 2 characters long"),
        ("a" * 101, "Name cannot exceed 100 characters"),
        ("John3", "John3 is not a valid name!"),
        ("Ann_Lee", "Ann_Lee is not a valid name!"),
        ("   ", "Name is required"),
        (None, "Name is required"),
    ],
)
def test_invalid_names_rejected(name, message):
    assert _errors({"name": name, "email": "ann@example.com"}) == {"name": message}


def test_name_is_trimmed_before_length_check():
    data = validate_user({"name": "  Ann  ", "email": "ann@example.com"}, disposable_domains=DOMAINS)
    assert data["name"] == "Ann"
    assert _errors({"name": "  a  ", "email": "ann@example.com"}) == {"name": "Name must be at least 2 characters long"}


def test_create_requires_name_and_email():
    assert _errors({}) == {"name": "Name is required", "email": "Email is required"}


def test_email_is_trimmed_and_lowercased():
    data = validate_user({"name": "Ann", "email": "  Ann@Example.COM "}, disposable_domains=DOMAINS)
    assert data["email"] == "ann@example.com"


@pytest.mark.parametrize("email", ["not-an-email", "ann@", "ann@example", "ann example@x.com"])
def test_malformed_email_rejected(email):
    assert _errors({"name": "Ann", "email": email}) == {"email": "Please enter a valid email address"}


@pytest.mark.parametrize("email", ["joe@tempmail.com", "JOE@TempMail.com", "x.y@throwaway.com"])
def test_disposable_domains_rejected(email):
    assert _errors({"name": "Ann", "email": email}) == {"email": "Disposable email addresses are not allowed"}


def test_create_defaults():
    data = validate_user({"name": "Ann", "email": "ann@example.com"}, disposable_domains=DOMAINS)
    assert data == {"name": "Ann", "email": "ann@example.com", "age": None, "hobbies": [], "is_active": True}


@pytest.mark.parametrize("age", [13, 50, 120, None])
def test_age_bounds_accepted(age):
    data = validate_user({"name": "Ann", "email": "ann@example.com", "age": age}, disposable_domains=DOMAINS)
    assert data["age"] == age


@pytest.mark.parametrize(
    "age, message",
    [
        (12, "Age must be at least 13"),
        (0, "Age must be at least 13"),
        (121, "Age cannot exceed 120 years"),
        (True, "Age must be a whole number"),
        ("25", "Age must be a whole number"),
    ],
)
def test_age_out_of_range_rejected(age, message):
    assert _errors({"name": "Ann", "email": "ann@example.com", "age": age}) == {"age": message}


def test_hobbies_trimmed_and_duplicates_kept_on_bulk_replace():
    data = validate_user(
        {"name": "Ann", "email": "ann@example.com", "hobbies": [" chess ", "chess"]},
        disposable_domains=DOMAINS,
    )
    assert data["hobbies"] == ["chess", "chess"]


def test_hobby_entry_rules():
    assert _errors({"name": "Ann", "email": "a@b.co", "hobbies": ["x"]}) == {"hobbies": "Hobby must be at least 2 characters"}
    assert _errors({"name": "Ann", "email": "a@b.co", "hobbies": ["x" * 51]}) == {"hobbies": "Hobby cannot exceed 50 characters"}


def test_more_than_ten_hobbies_rejected():
    hobbies = [f"hobby{i}" for i in range(11)]
    assert _errors({"name": "Ann", "email": "a@b.co", "hobbies": hobbies}) == {"hobbies": "Cannot have more than 10 hobbies"}


def test_errors_accumulate_across_fields():
    errors = _errors({"name": "A", "email": "bad", "age": 5, "hobbies": ["x"]})
    assert set(errors) == {"name", "email", "age", "hobbies"}


def test_update_only_checks_supplied_fields():
    assert validate_user({}, mode="update", disposable_domains=DOMAINS) == {}
    assert validate_user({"age": 30}, mode="update", disposable_domains=DOMAINS) == {"age": 30}
    assert validate_user({"age": None}, mode="update", disposable_domains=DOMAINS) == {"age": None}
    assert _errors({"name": None}, mode="update") == {"name": "Name is required"}


def test_server_managed_fields_are_dropped():
    data = validate_user(
        {"name": "Ann", "email": "ann@example.com", "profile_score": 100, "created_at": "x"},
        disposable_domains=DOMAINS,
    )
    assert "profile_score" not in data
    assert "created_at" not in data


def test_is_active_must_be_boolean():
    assert _errors({"is_active": "yes"}, mode="update") == {"is_active": "isActive must be a boolean"}


def test_validate_hobby():
    assert validate_hobby("  reading ") == "reading"
    with pytest.raises(FieldValidationError) as exc:
        validate_hobby(" r ")
    assert exc.value.errors == {"hobby": "Hobby must be at least 2 characters"}


def test_validate_object_id():
    assert validate_object_id("507F1F77BCF86CD799439011") == "507f1f77bcf86cd799439011"
    for bad in ["123", "507f1f77bcf86cd79943901z", "507f1f77bcf86cd7994390111", None]:
        with pytest.raises(MalformedRequestError):
            validate_object_id(bad)
