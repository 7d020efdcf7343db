import httpx
import pytest

from sarisari.ai import EnvCredentialStore, SariClient, StaticCredentialStore
from sarisari.ai.client import extract_text
from sarisari.ai.parsing import (
    Parsed, Unparseable, clean_category, parse_chat, parse_forecast, parse_seed_items, strip_fences
)
from sarisari.config import GeminiConfig


def envelope(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


def make_client(keys, handler):
    calls = []

    def record(request):
        calls.append(request.url.params['key'])
        return handler(request)

    client = SariClient(StaticCredentialStore(keys), config=GeminiConfig(),
                        transport=httpx.MockTransport(record))
    return client, calls


async def test_generate_posts_prompt_and_returns_text():
    seen = {}

    def handler(request):
        seen['url'] = str(request.url)
        seen['body'] = request.read()
        return httpx.Response(200, json=envelope('Mabuhay!'))

    client, calls = make_client(['k1'], handler)
    assert await client.generate('hello') == 'Mabuhay!'
    assert calls == ['k1']
    assert ':generateContent' in seen['url']
    assert b'"text":"hello"' in seen['body'].replace(b' ', b'')


async def test_generate_rotates_keys_on_failure():
    def handler(request):
        key = request.url.params['key']
        if key == 'bad-status':
            return httpx.Response(429, json={'error': 'quota'})
        if key == 'no-text':
            return httpx.Response(200, json={'candidates': []})
        if key == 'broken':
            raise httpx.ConnectError('refused', request=request)
        return httpx.Response(200, json=envelope('ok from good'))

    client, calls = make_client(['bad-status', 'broken', 'no-text', 'good', 'unused'], handler)
    assert await client.generate('hi') == 'ok from good'
    assert calls == ['bad-status', 'broken', 'no-text', 'good']


async def test_generate_returns_none_when_every_key_fails():
    client, calls = make_client(['a', 'b'], lambda request: httpx.Response(500))
    assert await client.generate('hi') is None
    assert calls == ['a', 'b']


async def test_generate_without_keys_makes_no_request():
    client, calls = make_client([], lambda request: httpx.Response(200, json=envelope('x')))
    assert not client.is_configured
    assert await client.generate('hi') is None
    assert calls == []


def test_env_credentials_merge_pool_and_single_key(monkeypatch):
    monkeypatch.setenv('GEMINI_API_KEYS', 'one, two,,')
    monkeypatch.setenv('GEMINI_API_KEY', 'three')
    assert EnvCredentialStore().get_credentials() == ['one', 'two', 'three']

    monkeypatch.setenv('GEMINI_API_KEY', 'two')
    assert EnvCredentialStore().get_credentials() == ['one', 'two']


@pytest.mark.parametrize('payload', [{}, {'candidates': []}, {'candidates': [{'content': {}}]}, None])
def test_extract_text_missing(payload):
    assert extract_text(payload) is None


def test_strip_fences():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('{"a": 1}') == '{"a": 1}'


def test_parse_forecast_accepts_fenced_json():
    text = '```json\n{"forecast": [100.5, 200], "holidayNote": "Fiesta", "tips": ["Stock up"]}\n```'
    result = parse_forecast(text)
    assert isinstance(result, Parsed)
    assert result.payload.forecast == [100.5, 200.0]
    assert result.payload.holiday_note == 'Fiesta'
    assert result.payload.tips == ['Stock up']


@pytest.mark.parametrize('text', [None, '', 'not json', '[1, 2]', '{"forecast": "soon"}'])
def test_parse_forecast_rejects(text):
    assert isinstance(parse_forecast(text), Unparseable)


def test_parse_chat():
    result = parse_chat('{"handoff": false, "reply": "We open at 6am."}')
    assert isinstance(result, Parsed)
    assert result.payload.reply == 'We open at 6am.'
    assert result.payload.handoff is False

    assert isinstance(parse_chat('Sure, let me help'), Unparseable)
    assert isinstance(parse_chat('{"handoff": true}'), Unparseable)


def test_parse_seed_items_extracts_array_from_prose():
    text = ('Here you go:\n[{"Name": "Lucky Me Pancit Canton", "Category": "Snacks", '
            '"Price": 15, "Cost": 12, "Quantity": 40}, {"Name": "", "Price": 5}] Enjoy!')
    result = parse_seed_items(text)
    assert isinstance(result, Parsed)
    assert [i.name for i in result.payload] == ['Lucky Me Pancit Canton']
    assert result.payload[0].cost == 12


@pytest.mark.parametrize('text', [None, 'no array here', '[]', '[{"Name": ""}]', '[oops]'])
def test_parse_seed_items_rejects(text):
    assert isinstance(parse_seed_items(text), Unparseable)


@pytest.mark.parametrize('raw,expected', [
    ('Beverages', 'Beverages'),
    ('"snacks."', 'Snacks'),
    ('  canned goods.\n', 'Canned Goods'),
    ('Frozen', 'Frozen'),
])
def test_clean_category(raw, expected):
    assert clean_category(raw) == expected
