import json

from carenexa.health.insights import VitalsInput, baseline_vector, fallback_insights, generate_insights
from carenexa.health.vector import compute_score

from tests.conftest import fake_chain


def test_fallback_normal_vitals():
    r = fallback_insights(72, 98)
    assert r.score == 75
    assert r.overall_status == "good"
    assert r.risk_factors == []
    assert r.fallback is True
    assert r.health_vector["cardiovascular"] == 0.8
    assert r.health_vector["respiratory"] == 0.85
    assert r.vector_score == compute_score(r.health_vector)
    assert len(r.recommendations) == 3


def test_fallback_one_abnormal():
    r = fallback_insights(72, 90)
    assert r.score == 60
    assert r.overall_status == "fair"
    assert r.risk_factors == ["Low blood oxygen"]
    assert "SpO2 of 90%" in r.insights[1]


def test_fallback_both_abnormal():
    r = fallback_insights(150, 88)
    assert r.score == 40
    assert r.overall_status == "poor"
    assert r.risk_factors
    assert "150 bpm" in r.insights[0]
    assert r.health_vector["cardiovascular"] == 0.4


def test_no_credential_uses_fallback():
    r = generate_insights(VitalsInput(heart_rate=72, oxygen_level=98))
    assert r.fallback is True
    assert r.score == 75


def test_model_output_is_normalised_and_rescored():
    payload = {
        "insights": ["Resting heart rate looks healthy."],
        "recommendations": ["Keep walking daily."],
        "riskFactors": [],
        "score": 82.5,
        "healthVector": {"cardiovascular": 0.9, "sleep": 1.4},
        "overallStatus": "Excellent",
    }
    chain = fake_chain("```json\n" + json.dumps(payload) + "\n```")

    r = generate_insights(VitalsInput(heart_rate=64, oxygen_level=99), chain=chain)

    assert r.fallback is False
    assert r.score == 83
    assert r.overall_status == "excellent"
    assert r.health_vector["sleep"] == 1.0
    assert r.health_vector["stress"] == 0.7
    assert r.vector_score == compute_score(r.health_vector)


def test_unusable_model_output_falls_back():
    r = generate_insights(VitalsInput(heart_rate=72, oxygen_level=98), chain=fake_chain("I think you're fine"))
    assert r.fallback is True


def test_exhausted_chain_falls_back():
    r = generate_insights(VitalsInput(heart_rate=150, oxygen_level=88), chain=fake_chain("", ""))
    assert r.fallback is True
    assert r.score == 40


def test_partial_model_vector_keeps_vitals_baseline():
    payload = {"score": 55, "healthVector": {"sleep": 0.3}}
    r = generate_insights(VitalsInput(heart_rate=150, oxygen_level=98), chain=fake_chain(json.dumps(payload)))

    assert r.fallback is False
    assert r.health_vector["sleep"] == 0.3
    assert r.health_vector["cardiovascular"] == 0.4
    assert r.health_vector["respiratory"] == 0.85
    assert r.health_vector == {**baseline_vector(150, 98), "sleep": 0.3}
