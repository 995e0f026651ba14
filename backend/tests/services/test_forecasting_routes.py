"""Forecasting route — POST /api/v1/forecasting/predict.

Invariants:
    - Empty body → generic forecast (200)
    - Known deal → scored forecast, deterministic under the zero-noise override
    - Unknown deal → 404; malformed deal_id → 400
"""

from datetime import datetime, timedelta, timezone


async def test_predict_without_deal_returns_generic_forecast(client):
    res = await client.post("/api/v1/forecasting/predict", json={})
    assert res.status_code == 200
    body = res.json()
    assert body["probability"] == 0.75
    assert [f["name"] for f in body["factors"]] == [
        "Market conditions", "Competition", "Budget alignment",
    ]


async def test_predict_scores_deal(client, seed_deal):
    deal = await seed_deal(
        stage="Negotiation", probability=50, value=20_000,
        expected_close_date=datetime.now(timezone.utc) + timedelta(days=20),
    )
    res = await client.post(
        "/api/v1/forecasting/predict", json={"deal_id": deal.id},
    )
    assert res.status_code == 200
    body = res.json()
    # 0.50 base + 0.15 negotiation, timing and size neutral, zero noise
    assert body["probability"] == 0.65
    assert "pain points" in body["recommendation"]
    factors = {f["name"]: f for f in body["factors"]}
    assert factors["Deal stage"]["impact"] == "positive"
    assert factors["Timeline"]["impact"] == "neutral"


async def test_predict_closed_won_deal_is_certain(client, seed_deal):
    deal = await seed_deal(
        stage="Closed Won", probability=100, value=5_000,
        expected_close_date=datetime.now(timezone.utc),
    )
    res = await client.post(
        "/api/v1/forecasting/predict", json={"deal_id": deal.id},
    )
    assert res.json()["probability"] == 1.0


async def test_predict_acknowledges_custom_input(client, seed_deal):
    deal = await seed_deal()
    res = await client.post("/api/v1/forecasting/predict", json={
        "deal_id": deal.id, "custom_input": "Procurement wants a 3-year term",
    })
    assert 'Regarding "Procurement wants a 3-year term"' in res.json()["recommendation"]


async def test_predict_unknown_deal_returns_404(client):
    res = await client.post(
        "/api/v1/forecasting/predict", json={"deal_id": 4242},
    )
    assert res.status_code == 404
    assert res.json()["detail"]["error"]["context"]["deal_id"] == 4242


async def test_predict_invalid_deal_id_returns_400(client):
    res = await client.post(
        "/api/v1/forecasting/predict", json={"deal_id": "abc"},
    )
    assert res.status_code == 400


async def test_predict_quotes_note_with_surrounding_whitespace(client, seed_deal):
    deal = await seed_deal()
    res = await client.post("/api/v1/forecasting/predict", json={
        "deal_id": deal.id, "custom_input": "  net-60 terms ",
    })
    assert 'Regarding "  net-60 terms ":' in res.json()["recommendation"]


async def test_predict_ignores_blank_note(client, seed_deal):
    deal = await seed_deal()
    res = await client.post("/api/v1/forecasting/predict", json={
        "deal_id": deal.id, "custom_input": "   ",
    })
    assert "Regarding" not in res.json()["recommendation"]
