from triage_hub.core.intake.classify import classify_idea, summarize_classification


def test_mobile_api_idea_is_software():
    c = classify_idea("building a mobile app with an API and auth")
    assert c.type == "software"
    assert {"software", "mobile", "api"} <= c.tags


def test_classification_is_deterministic():
    text = "Inventory app for warehouse staff with barcode scanning and payments"
    assert classify_idea(text) == classify_idea(text)


def test_ops_only_idea():
    c = classify_idea("Write the weekly maintenance checklist and shift handover procedure")
    assert c.type == "ops"
    assert "ops" in c.tags
    assert "software" not in c.tags


def test_both_signals_is_hybrid():
    c = classify_idea("A dashboard to track the onboarding process for new staff")
    assert c.type == "hybrid"
    assert {"software", "ops", "web"} <= c.tags


def test_no_signal_defaults_to_hybrid_not_error():
    c = classify_idea("something nice for the garden")
    assert c.type == "hybrid"
    assert c.tags == frozenset({"hybrid"})
    assert c.risks == frozenset()


def test_risks_detected_independently():
    c = classify_idea("family budget app with stripe payments, push reminders and GDPR export")
    assert {"payments", "notifications", "pii-privacy", "multi-user"} <= c.risks


def test_summary_lists_type_and_risks():
    summary, points = summarize_classification(classify_idea("mobile app with billing"))
    assert summary.startswith("Classified as software")
    assert "type: software" in points
    assert any(p.startswith("risks: ") and "payments" in p for p in points)
