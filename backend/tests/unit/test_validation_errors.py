from app.errors import validation_error_map


def test_location_prefix_is_dropped_and_nested_fields_dotted():
    errors = [
        {"loc": ("body", "customerEmail"), "msg": "value is not a valid email address"},
        {"loc": ("body", "address", "street"), "msg": "String should have at least 5 characters"},
        {"loc": ("query", "lat"), "msg": "Input should be a valid number"},
    ]
    assert validation_error_map(errors) == {
        "customerEmail": ["value is not a valid email address"],
        "address.street": ["String should have at least 5 characters"],
        "lat": ["Input should be a valid number"],
    }


def test_multiple_messages_for_one_field_are_collected():
    errors = [
        {"loc": ("body", "password"), "msg": "too short"},
        {"loc": ("body", "password"), "msg": "missing digit"},
    ]
    assert validation_error_map(errors) == {"password": ["too short", "missing digit"]}


def test_body_level_error_uses_root_key():
    assert validation_error_map([{"loc": ("body",), "msg": "Field required"}]) == {"__root__": ["Field required"]}
