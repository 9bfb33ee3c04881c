"""Word frequency model: filtering, counting, decay and eviction."""

from __future__ import annotations

import itertools

import pytest

from streamcloud.model.frequency import STOP_WORDS, eliminate_word


# ------------------------------------------------------------------------------
# Elimination predicate
# ------------------------------------------------------------------------------

@pytest.mark.parametrize("word", ["#hello", "http://x", "123", "the", "", "The", "HTTPS", "-5", "rt", "#"])
def test_eliminated_words(word):
    assert eliminate_word(word) is True


@pytest.mark.parametrize("word", ["hello", "cat", "12abc", "python3", "théâtre"])
def test_kept_words(word):
    assert eliminate_word(word) is False


@pytest.mark.parametrize("word", ["\x00", " ", "​", "💥", "1_", "9" * 50])
def test_predicate_never_raises(word):
    assert isinstance(eliminate_word(word), bool)


def test_stop_words_are_lowercase():
    assert all(w == w.lower() for w in STOP_WORDS)


# ------------------------------------------------------------------------------
# Ingestion
# ------------------------------------------------------------------------------

def test_sentence_creates_entries_for_content_words(make_model):
    model = make_model()
    model.ingest("the cat sat on the mat")

    assert [e.key for e in model.entries()] == ["cat", "sat", "mat"]
    assert all(e.count == 1 for e in model.entries())
    assert model.recent_messages("cat") == ("the cat sat on the mat",)


def test_punctuation_and_case_are_normalized(make_model):
    model = make_model()
    model.ingest("Hello, World!")
    model.ingest("hello... world?")

    entry = model.get("hello")
    assert entry is not None
    assert entry.count == 2
    assert entry.display_text == "Hello"
    assert "world" in model


def test_hashtags_links_and_numbers_are_dropped(make_model):
    model = make_model()
    model.ingest("#Python rocks http://example.com/x 2024 ...")

    assert [e.key for e in model.entries()] == ["rocks"]


@pytest.mark.parametrize("message", ["", "   ", "\t\n", "!!! ??? ...", "the a an"])
def test_messages_without_words_leave_no_entries(make_model, message):
    model = make_model()
    model.ingest(message)

    assert len(model) == 0
    assert model.message_count == 1


def test_non_string_message_is_rejected(make_model):
    model = make_model()
    with pytest.raises(TypeError):
        model.ingest(None)


def test_repeated_word_in_one_message_counts_each_occurrence(make_model):
    model = make_model()
    model.ingest("cat cat cat")

    assert model.get("cat").count == 3


def test_recent_messages_keep_only_the_newest(make_model):
    model = make_model(max_recent=20)
    messages = [f"cat {i}" for i in range(25)]
    for m in messages:
        model.ingest(m)

    assert model.recent_messages("cat") == tuple(messages[5:])


def test_unknown_word_has_no_recent_messages(make_model):
    assert make_model().recent_messages("nothing") == ()


# ------------------------------------------------------------------------------
# Graph bookkeeping
# ------------------------------------------------------------------------------

def test_new_word_gets_a_node_connected_to_the_root(make_model, diagram, root):
    model = make_model()
    model.ingest("cat")
    node = model.get("cat").node

    assert diagram.contains_node(root)
    assert diagram.contains_node(node)
    assert node.connections == (root,)
    assert node.position == root.position
    assert node.label == "cat"


def test_clear_removes_every_word_node_but_keeps_the_root(make_model, diagram, root):
    model = make_model()
    model.ingest("cat dog bird")
    model.clear()

    assert len(model) == 0
    assert diagram.nodes == (root,)


# ------------------------------------------------------------------------------
# Decay
# ------------------------------------------------------------------------------

def test_decay_fires_exactly_every_saturation_interval(make_model):
    model = make_model(saturation_interval=20)
    model.ingest("cat cat cat dog")
    for _ in range(18):
        model.ingest("")

    assert model.message_count == 19
    assert model.get("cat").count == 3

    model.ingest("")

    assert model.get("cat").count == 2
    assert model.get("dog").count == 1


def test_decay_is_applied_after_the_message_is_counted(make_model):
    model = make_model(saturation_interval=2)
    model.ingest("cat")
    model.ingest("cat")

    # 2 hits, then the pass at message 2 takes one away
    assert model.get("cat").count == 1


def test_decay_repeats(make_model):
    model = make_model(saturation_interval=5)
    model.ingest(" ".join(["cat"] * 10))
    for _ in range(14):
        model.ingest("")

    # three passes: messages 5, 10 and 15
    assert model.get("cat").count == 7


# ------------------------------------------------------------------------------
# Eviction
# ------------------------------------------------------------------------------

def test_live_words_never_exceed_capacity(make_model):
    model = make_model(max_words=10)
    for i in range(200):
        model.ingest(f"word{i}")
        assert len(model) <= 10

    assert model.eviction_count == 190


def test_least_recently_updated_single_hit_word_goes_first(make_model, diagram):
    model = make_model(max_words=3, saturation_interval=4)
    model.ingest("alpha")  # t=0
    model.ingest("beta")   # t=1
    model.ingest("alpha")  # t=2, count 2
    model.ingest("gamma")  # t=3, decay pass: alpha back to 1

    beta_node = model.get("beta").node
    assert model.get("alpha").count == 1

    model.ingest("delta")

    assert [e.key for e in model.entries()] == ["alpha", "gamma", "delta"]
    assert not diagram.contains_node(beta_node)


def test_ties_are_broken_by_first_seen_order(diagram, root):
    from streamcloud.model.frequency import WordFrequencyModel

    model = WordFrequencyModel(diagram=diagram, root=root, max_words=3, clock=lambda: 0.0)
    for word in ("alpha", "beta", "gamma", "delta", "epsilon"):
        model.ingest(word)

    assert [e.key for e in model.entries()] == ["gamma", "delta", "epsilon"]


def test_multi_hit_words_are_never_evicted(make_model):
    model = make_model(max_words=3)
    model.ingest("alpha alpha")
    model.ingest("beta")
    model.ingest("gamma gamma")
    model.ingest("delta")

    assert [e.key for e in model.entries()] == ["alpha", "gamma", "delta"]


def test_capacity_overshoot_without_candidates_is_tolerated(make_model, caplog):
    model = make_model(max_words=2, saturation_interval=100)
    model.ingest("alpha alpha")
    model.ingest("beta beta")

    with caplog.at_level("WARNING", logger="streamcloud"):
        model.ingest("gamma")

    assert len(model) == 3
    assert model.overshoot_events == 1
    assert "capacity" in caplog.text

    # still no candidate besides the new word: one word over capacity, never more
    model.ingest("delta")
    assert len(model) == 3
    assert "gamma" not in model
    assert model.overshoot_events == 2


def test_overshoot_never_accumulates(make_model):
    model = make_model(max_words=2, saturation_interval=100)
    model.ingest("alpha alpha")
    model.ingest("beta beta")

    for i in range(10):
        model.ingest(f"word{i}")
        assert len(model) == 3


def test_capacity_recovers_once_candidates_exist(make_model):
    model = make_model(max_words=2, saturation_interval=4)
    model.ingest("alpha alpha")
    model.ingest("beta beta")
    model.ingest("gamma")  # overshoot: 3 words
    model.ingest("")  # decay pass: alpha and beta back to 1

    model.ingest("delta")

    assert [e.key for e in model.entries()] == ["gamma", "delta"]
    assert model.eviction_count == 2
    assert model.overshoot_events == 1


def test_eviction_discards_node_and_messages_together(make_model, diagram):
    model = make_model(max_words=1)
    model.ingest("alpha")
    evicted = model.get("alpha")

    model.ingest("beta")

    assert "alpha" not in model
    assert not diagram.contains_node(evicted.node)
    assert len(evicted.recent_messages) == 0


def test_timestamps_come_from_the_clock(diagram, root):
    from streamcloud.model.frequency import WordFrequencyModel

    ticks = itertools.count(100)
    model = WordFrequencyModel(diagram=diagram, root=root, clock=lambda: next(ticks))
    model.ingest("cat")
    model.ingest("cat")

    assert model.get("cat").updated_at == 101
