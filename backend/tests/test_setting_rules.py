"""站点设置规则引擎单元测试 — 分类推导、清洗、逐条规则、批量校验。"""
import pytest

from app.services import setting_rules
from app.services.setting_rules import (
    ERROR_INVALID_URL,
    ERROR_META_DESCRIPTION_LONG,
    ERROR_META_TITLE_LONG,
    ERROR_REQUIRED,
    ERROR_SITE_NAME_SHORT,
    ERROR_TOO_LONG,
    ERROR_URL_SCHEME,
    category_of,
    sanitize,
    validate,
    validate_batch,
)


class TestCategory:
    @pytest.mark.parametrize("key,expected", [
        ("site_name", "general"),
        ("seo_meta_title", "seo"),
        ("social_twitter", "social"),
        ("unknown_key", "general"),
        ("", "general"),
    ])
    def test_category_from_prefix(self, key, expected):
        assert category_of(key) == expected


class TestSanitize:
    def test_trims_whitespace(self):
        assert sanitize("site_name", "  Inkwell  ") == "Inkwell"

    def test_strips_script_block(self):
        assert sanitize("site_description", "Hi<script>alert(1)</script> there") == "Hi there"

    def test_strips_iframe_case_insensitive(self):
        assert sanitize("site_tagline", "a<IFRAME src=x></IFRAME>b") == "ab"

    def test_strips_javascript_scheme_and_event_handler(self):
        assert sanitize("site_tagline", "javascript:x") == "x"
        assert sanitize("site_tagline", '<img onerror="boom">') == '<img "boom">'

    def test_reassembled_fragment_is_removed(self):
        # 删除内层片段后会拼出新的 javascript:
        assert sanitize("site_tagline", "javajavascript:script:go") == "go"

    def test_social_gets_https_prefix(self):
        assert sanitize("social_twitter", "twitter.com/inkwell") == "https://twitter.com/inkwell"

    def test_social_keeps_existing_scheme(self):
        assert sanitize("social_github", "http://github.com/inkwell") == "http://github.com/inkwell"
        assert sanitize("social_github", "HTTPS://github.com/x") == "https://github.com/x"

    def test_social_empty_stays_empty(self):
        assert sanitize("social_facebook", "   ") == ""
        assert sanitize("social_facebook", "<script>x</script>") == ""

    def test_social_javascript_url_is_neutralized(self):
        assert sanitize("social_twitter", "javascript:alert(1)") == "https://alert(1)"

    def test_non_social_key_not_prefixed(self):
        assert sanitize("site_logo", "cdn.example.com/logo.png") == "cdn.example.com/logo.png"


class TestValidate:
    def test_required_site_name(self):
        result = validate("site_name", "")
        assert not result.valid
        assert result.error == ERROR_REQUIRED

    def test_required_after_sanitize(self):
        result = validate("seo_meta_title", "  <script>x</script> ")
        assert result.error == ERROR_REQUIRED

    def test_site_name_too_short(self):
        result = validate("site_name", "a")
        assert not result.valid
        assert result.error == ERROR_SITE_NAME_SHORT

    def test_site_name_ok(self):
        assert validate("site_name", "Inkwell").valid

    def test_social_without_scheme_is_valid(self):
        assert validate("social_twitter", "twitter.com/x").valid

    def test_social_empty_is_valid(self):
        assert validate("social_linkedin", "").valid

    def test_social_ftp_rejected_with_scheme_error(self):
        result = validate("social_twitter", "ftp://x.com")
        assert not result.valid
        assert result.error == ERROR_URL_SCHEME

    @pytest.mark.parametrize("value", ["bad", "not a url", "https://", "http://-x-.com", "https://host:0/", "https://x..com", "https://bad."])
    def test_social_malformed(self, value):
        result = validate("social_github", value)
        assert not result.valid
        assert result.error == ERROR_INVALID_URL

    @pytest.mark.parametrize("value", [
        "https://github.com/inkwell",
        "http://localhost:8080/me",
        "https://127.0.0.1/profile",
        "instagram.com/inkwell?tab=posts",
        "bücher.de/shop",
        "https://münchen.de",
        "my_blog.example.com",
        "https://x.com./a",
    ])
    def test_social_well_formed(self, value):
        assert validate("social_instagram", value).valid

    def test_meta_title_length(self):
        assert validate("seo_meta_title", "t" * 60).valid
        result = validate("seo_meta_title", "t" * 61)
        assert result.error == ERROR_META_TITLE_LONG

    def test_meta_description_length(self):
        assert validate("seo_meta_description", "d" * 160).valid
        result = validate("seo_meta_description", "d" * 161)
        assert result.error == ERROR_META_DESCRIPTION_LONG

    def test_generic_max_length(self):
        assert validate("site_description", "x" * 1000).valid
        result = validate("site_description", "x" * 1001)
        assert result.error == ERROR_TOO_LONG

    def test_generic_length_beats_key_specific_rule(self):
        result = validate("seo_meta_title", "t" * 1001)
        assert result.error == ERROR_TOO_LONG

    def test_url_rule_runs_before_length(self):
        result = validate("social_twitter", "ftp://" + "x" * 1200)
        assert result.error == ERROR_URL_SCHEME


class TestValidateBatch:
    def test_reports_every_invalid_key(self):
        result = validate_batch({"site_name": "", "social_twitter": "bad"})
        assert not result.valid
        assert set(result.errors) == {"site_name", "social_twitter"}
        assert result.errors["site_name"] == ERROR_REQUIRED
        assert result.errors["social_twitter"] == ERROR_INVALID_URL

    def test_valid_keys_are_absent_from_errors(self):
        result = validate_batch({
            "site_name": "Inkwell",
            "seo_meta_title": "",
            "social_github": "github.com/inkwell",
        })
        assert set(result.errors) == {"seo_meta_title"}

    def test_all_valid(self):
        result = validate_batch({"site_name": "Inkwell", "site_tagline": ""})
        assert result.valid
        assert result.errors == {}

    def test_empty_batch_is_valid(self):
        assert validate_batch({}).valid

    def test_agrees_with_single_key_validate(self):
        values = {"site_name": "a", "seo_meta_description": "d" * 200, "social_facebook": "ftp://fb.com"}
        batch = validate_batch(values)
        for key, value in values.items():
            assert batch.errors[key] == setting_rules.validate(key, value).error
