import json
import re
from types import SimpleNamespace

import pytest

from romasub.errors import LanguageServiceError
from romasub.services.enrichment import BatchEnricher, Degrade, chunk, has_japanese
from romasub.services.language import LanguageService, parse_string_array

_NUMBERED_LINE_RE = re.compile(r"^\d+\. (.*)$", re.MULTILINE)


class _EchoService:
    """Replies with the numbered sentences of the prompt, transformed."""

    def __init__(self, transform=str.upper, broken_calls=(), short_calls=()):
        self.transform = transform
        self.broken_calls = set(broken_calls)
        self.short_calls = set(short_calls)
        self.calls = []

    def complete(self, system, prompt, temperature):
        sentences = _NUMBERED_LINE_RE.findall(prompt)
        self.calls.append(sentences)
        n = len(self.calls)
        if n in self.broken_calls:
            return "Sorry, I cannot help with that."
        if n in self.short_calls:
            sentences = sentences[:-1]
        return "```json\n" + json.dumps([self.transform(s) for s in sentences], ensure_ascii=False) + "\n```"


class _DownService:
    def __init__(self):
        self.calls = 0

    def complete(self, system, prompt, temperature):
        self.calls += 1
        raise LanguageServiceError("Connection error.")


def test_chunk_sizes():
    batches = chunk([str(i) for i in range(85)], 40)
    assert [len(b) for b in batches] == [40, 40, 5]
    assert sum(batches, []) == [str(i) for i in range(85)]
    assert chunk([], 40) == []
    with pytest.raises(ValueError):
        chunk(["a"], 0)


def test_pass_preserves_order_across_batches():
    texts = [f"line {i}" for i in range(85)]
    service = _EchoService()
    enricher = BatchEnricher(service=service, romaji_batch_size=40, local_fallback=False)
    romaji = enricher.transliterate(texts)
    assert [len(c) for c in service.calls] == [40, 40, 5]
    assert romaji == [t.upper() for t in texts]


def test_translation_uses_its_own_bound_and_language():
    texts = [f"line {i}" for i in range(31)]
    service = _EchoService(transform=lambda s: f"vi:{s}")
    enricher = BatchEnricher(service=service, translate_batch_size=30, target_language="Vietnamese")
    assert enricher.translate(texts) == [f"vi:{t}" for t in texts]
    assert [len(c) for c in service.calls] == [30, 1]


def test_bad_batch_degrades_only_that_batch():
    texts = [f"line {i}" for i in range(5)]
    service = _EchoService(broken_calls={1}, short_calls={3})
    enricher = BatchEnricher(service=service, translate_batch_size=2)
    assert enricher.translate(texts) == ["", "", "LINE 2", "LINE 3", ""]


def test_unreachable_service_degrades_the_whole_pass():
    texts = ["これはペンです", "hello"]
    service = _DownService()
    enricher = BatchEnricher(service=service, romaji_batch_size=1, local_fallback=False)
    assert enricher.transliterate(texts) == ["", ""]
    assert enricher.translate(texts) == texts
    assert service.calls == 2


def test_skip_translate_does_not_call_the_service():
    service = _EchoService()
    enricher = BatchEnricher(service=service)
    assert enricher.translate(["a", "b"], skip=True) == ["", ""]
    assert service.calls == []


def test_empty_input_makes_no_calls():
    service = _EchoService()
    enricher = BatchEnricher(service=service)
    assert enricher.transliterate([]) == []
    assert enricher.translate([]) == []
    assert service.calls == []


def test_local_fallback_fills_japanese_lines_only():
    enricher = BatchEnricher(service=_DownService(), local_fallback=True)
    romaji = enricher.transliterate(["すし", "hello"])
    assert romaji[0].strip() != ""
    assert romaji[1] == ""


def test_has_japanese():
    assert has_japanese("カタカナ")
    assert has_japanese("漢字")
    assert not has_japanese("romaji")


@pytest.mark.parametrize("reply, expected", [
    ('["a", "b"]', ["a", "b"]),
    ('```json\n["a", null, 3]\n```', ["a", "", "3"]),
    ('Here you go: ["x"] hope it helps', ["x"]),
    ('{"a": 1}', None),
    ("not json", None),
    ("", None),
])
def test_parse_string_array(reply, expected):
    assert parse_string_array(reply) == expected


def test_degrade_policies():
    assert Degrade.EMPTY.fill(["a", "b"]) == ["", ""]
    assert Degrade.ECHO.fill(["a", "b"]) == ["a", "b"]


def _chat_client(response):
    create = lambda **kwargs: response
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.mark.parametrize("response", [
    SimpleNamespace(choices=[]),
    SimpleNamespace(choices=None),
    SimpleNamespace(choices=[SimpleNamespace(message=None)]),
])
def test_reply_without_choices_degrades_the_batch(response):
    service = LanguageService(client=_chat_client(response), model="test-model")
    assert service.complete("system", "prompt", 0.1) == ""
    enricher = BatchEnricher(service=service, local_fallback=False)
    assert enricher.transliterate(["a", "b"]) == ["", ""]
    assert enricher.translate(["a", "b"]) == ["", ""]
