# tests/test_json_fields.py

from cierres.utils.json_fields import as_dict, as_list, as_text, truthy


def test_model_json_field_readers():
    assert as_text(None) == ""
    assert as_text("  FALTANTE ") == "FALTANTE"
    assert as_text(3850) == "3850"
    assert as_list("x") == []
    assert as_list([1]) == [1]
    assert as_dict(["a"]) == {}
    assert truthy("Sí") and truthy("true") and truthy(1)
    assert not truthy("no") and not truthy(None) and not truthy("")
