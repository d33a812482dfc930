"""Tests for recipient resolution and campaign delivery."""
import asyncio
from datetime import datetime, timedelta

import pytest

from greenghost.errors import DeliveryError, NoRecipientsError, RecipientResolutionError
from greenghost.models.email_segment import EmailSegment
from greenghost.models.email_template import EmailTemplate
from greenghost.models.waitlist import WaitlistEntry
from greenghost.services.campaigns import CampaignSender, Recipient, RecipientFilter, RecipientResolver
from greenghost.services.email_templates import CustomTemplate


@pytest.fixture
def sender(db_session, mailer, renderer):
    return CampaignSender(db_session, mailer, renderer, error_limit=10)


@pytest.fixture
def template(db_session):
    row = EmailTemplate(
        name="Spring launch",
        subject="We're mowing in your area",
        html_content="<p>Service starts <strong>April 1</strong>.</p>",
        from_email="news@greenghost.io",
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return CustomTemplate(row)


@pytest.fixture
def waitlist(db_session):
    base = datetime(2025, 1, 1)
    rows = [
        WaitlistEntry(email="ann@example.com", zip_code="78701", verified=True, created_at=base),
        WaitlistEntry(email="ben@example.com", zip_code="78702", verified=False, created_at=base + timedelta(minutes=1)),
        WaitlistEntry(email="cat@example.com", zip_code="75034", verified=True, created_at=base + timedelta(minutes=2)),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def custom(*emails):
    return RecipientFilter(recipient_type="custom", custom_recipients=[Recipient(email=e) for e in emails])


def test_partial_failure_is_counted_and_audited(sender, template, mailer, db_session):
    mailer.failures["a@x.com"] = "550 mailbox unavailable"

    result = asyncio.run(sender.send(template, custom("a@x.com", "b@x.com")))

    assert result.success_count == 1
    assert result.error_count == 1
    assert result.total_recipients == 2
    assert result.errors == ["a@x.com: 550 mailbox unavailable"]

    segments = db_session.query(EmailSegment).all()
    assert len(segments) == 1
    assert segments[0].total_recipients == 2
    assert segments[0].template_id == template.row.id
    assert segments[0].id == result.segment_id


def test_zero_recipients_rejected_before_sending(sender, template, mailer, db_session):
    with pytest.raises(NoRecipientsError):
        asyncio.run(sender.send(template, RecipientFilter(recipient_type="waitlist")))

    assert mailer.sent == []
    assert db_session.query(EmailSegment).count() == 0


def test_segment_written_even_when_every_send_fails(sender, template, mailer, db_session):
    mailer.failures.update({"a@x.com": "boom", "b@x.com": "boom"})

    result = asyncio.run(sender.send(template, custom("a@x.com", "b@x.com")))

    assert result.success_count == 0
    assert result.error_count == 2
    assert db_session.query(EmailSegment).one().total_recipients == 2


def test_error_list_is_capped_but_count_is_exact(sender, template, mailer):
    emails = [f"user{i}@x.com" for i in range(15)]
    for email in emails:
        mailer.failures[email] = "rejected"

    result = asyncio.run(sender.send(template, custom(*emails)))

    assert result.error_count == 15
    assert len(result.errors) == 10
    assert result.errors[0] == "user0@x.com: rejected"
    assert result.errors[-1] == "user9@x.com: rejected"


def test_sends_in_recipient_order(sender, template, mailer):
    asyncio.run(sender.send(template, custom("c@x.com", "a@x.com", "b@x.com")))
    assert [m.to for m in mailer.sent] == ["c@x.com", "a@x.com", "b@x.com"]


def test_mailer_exception_counts_as_failure(sender, template, mailer):
    mailer.raises["a@x.com"] = ConnectionError("socket closed")

    result = asyncio.run(sender.send(template, custom("a@x.com", "b@x.com")))

    assert result.success_count == 1
    assert result.errors == ["a@x.com: socket closed"]


def test_rendered_html_uses_layout_and_template_sender(sender, template, mailer):
    asyncio.run(sender.send(template, custom("a@x.com")))

    message = mailer.sent[0]
    assert message.subject == "We're mowing in your area"
    assert message.from_address == "news@greenghost.io"
    assert "<strong>April 1</strong>" in message.html
    assert "GreenGhost Tech" in message.html


def test_from_email_override(sender, template, mailer):
    asyncio.run(sender.send(template, custom("a@x.com"), from_email="promo@greenghost.io"))
    assert mailer.sent[0].from_address == "promo@greenghost.io"


def test_display_name_is_passed_through(sender, template, mailer):
    recipients = RecipientFilter(recipient_type="custom", custom_recipients=[Recipient("a@x.com", "Ann")])
    asyncio.run(sender.send(template, recipients))
    assert mailer.sent[0].display_name == "Ann"


class TestRecipientResolver:

    def test_all_includes_unverified(self, db_session, waitlist):
        recipients = RecipientResolver(db_session).resolve(RecipientFilter(recipient_type="all"))
        assert [r.email for r in recipients] == ["ann@example.com", "ben@example.com", "cat@example.com"]

    def test_waitlist_is_verified_only(self, db_session, waitlist):
        recipients = RecipientResolver(db_session).resolve(RecipientFilter(recipient_type="waitlist"))
        assert [r.email for r in recipients] == ["ann@example.com", "cat@example.com"]

    def test_zip_filter(self, db_session, waitlist):
        recipients = RecipientResolver(db_session).resolve(
            RecipientFilter(recipient_type="zip", zip_codes=["78701", "78702"])
        )
        assert [r.email for r in recipients] == ["ann@example.com", "ben@example.com"]

    def test_malformed_zip_rejected(self, db_session, waitlist):
        with pytest.raises(RecipientResolutionError):
            RecipientResolver(db_session).resolve(RecipientFilter(recipient_type="zip", zip_codes=["787"]))

    def test_empty_zip_filter_rejected(self, db_session):
        with pytest.raises(RecipientResolutionError):
            RecipientResolver(db_session).resolve(RecipientFilter(recipient_type="zip"))

    def test_custom_list_normalized_and_deduplicated(self, db_session):
        recipients = RecipientResolver(db_session).resolve(custom("A@x.com", "a@x.com", "b@x.com"))
        assert [r.email for r in recipients] == ["a@x.com", "b@x.com"]

    def test_custom_list_with_bad_email_rejected(self, db_session):
        with pytest.raises(RecipientResolutionError):
            RecipientResolver(db_session).resolve(custom("a@x.com", "nope"))

    def test_unknown_type_rejected(self, db_session):
        with pytest.raises(RecipientResolutionError):
            RecipientResolver(db_session).resolve(RecipientFilter(recipient_type="everyone"))


def test_send_test_writes_no_segment(sender, template, mailer, db_session):
    asyncio.run(sender.send_test(template, "admin@greenghost.io"))

    assert len(mailer.sent) == 1
    assert mailer.sent[0].subject.startswith("[TEST]")
    assert db_session.query(EmailSegment).count() == 0


def test_send_test_failure_raises(sender, template, mailer):
    mailer.failures["admin@greenghost.io"] = "relay denied"
    with pytest.raises(DeliveryError):
        asyncio.run(sender.send_test(template, "admin@greenghost.io"))


def test_system_template_campaign(sender, store, mailer, db_session, waitlist):
    welcome = store.get("welcome")

    result = asyncio.run(sender.send(welcome, RecipientFilter(recipient_type="waitlist")))

    assert result.success_count == 2
    segment = db_session.query(EmailSegment).one()
    assert segment.template_id is None
    assert segment.template_name == "welcome"


class TestStoredFilter:

    def stored(self, db_session, recipient_filter, recipient_type="custom"):
        row = EmailTemplate(
            name="Stored audience",
            subject="Hello",
            html_content="<p>Hi</p>",
            recipient_type=recipient_type,
            recipient_filter=recipient_filter,
        )
        db_session.add(row)
        db_session.commit()
        return CustomTemplate(row)

    def test_reads_recipients_and_zips(self, db_session):
        template = self.stored(db_session, {
            "custom_recipients": [{"email": "a@x.com", "name": "Ann"}, "b@x.com"],
            "zip_codes": ["78701"],
        })

        recipient_filter = RecipientFilter.for_template(template)

        assert recipient_filter.custom_recipients == [Recipient("a@x.com", "Ann"), Recipient("b@x.com")]
        assert recipient_filter.zip_codes == ["78701"]

    def test_missing_filter_uses_defaults(self, db_session):
        recipient_filter = RecipientFilter.for_template(self.stored(db_session, None, recipient_type="waitlist"))
        assert recipient_filter.custom_recipients == []
        assert recipient_filter.zip_codes == []

    @pytest.mark.parametrize("recipient_filter", [
        {"custom_recipients": [{"name": "Ann"}]},
        {"custom_recipients": [{"email": None}]},
        {"custom_recipients": [42]},
        {"custom_recipients": None},
        {"custom_recipients": "a@x.com"},
        {"zip_codes": None},
        {"zip_codes": [78701]},
        ["a@x.com"],
    ])
    def test_malformed_filter_rejected(self, db_session, recipient_filter):
        with pytest.raises(RecipientResolutionError):
            RecipientFilter.for_template(self.stored(db_session, recipient_filter))
