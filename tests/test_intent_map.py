from intent_map import extract_capsule_id, mentions_capsule_keyword, wants_new_capsule


def test_extract_capsule_id_reads_keyword_prefixed_numbers() -> None:
    assert extract_capsule_id("capsule 7") == 7
    assert extract_capsule_id("#12") == 12
    assert extract_capsule_id("vault 3") == 3
    assert extract_capsule_id("Vault #44 please") == 44
    assert extract_capsule_id("open EPOCH 2") == 2
    assert extract_capsule_id("id: 8") is None
    assert extract_capsule_id("id8") == 8


def test_extract_capsule_id_accepts_bare_numbers_only_as_whole_input() -> None:
    assert extract_capsule_id("42") == 42
    assert extract_capsule_id("  42  ") == 42
    assert extract_capsule_id("I have 42 reasons") is None


def test_extract_capsule_id_returns_none_without_a_number() -> None:
    assert extract_capsule_id("hello") is None
    assert extract_capsule_id("") is None
    assert extract_capsule_id(None) is None


def test_keyword_prefix_wins_over_bare_number() -> None:
    assert extract_capsule_id("capsule 5") == 5
    assert extract_capsule_id("#0") == 0


def test_wants_new_capsule_needs_keyword_and_id() -> None:
    assert wants_new_capsule("check capsule 9")
    assert wants_new_capsule("VAULT #4")
    assert not wants_new_capsule("my vault password")
    assert not wants_new_capsule("#9")
    assert not wants_new_capsule("42")
    assert mentions_capsule_keyword("my Vault password")
