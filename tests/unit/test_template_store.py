import pytest

from notifier.domain.models import Template
from notifier.infrastructure.adapters import (
    DEFAULT_TEMPLATES,
    FileSystemTemplateStore,
    InMemoryTemplateStore,
)


class TestInMemoryTemplateStore:
    def test_get_and_add(self):
        store = InMemoryTemplateStore(DEFAULT_TEMPLATES)

        assert store.get("WELCOME_EMAIL").subject == "Welcome, {{ firstName }}!"
        assert store.get("UNKNOWN") is None

        store.add(Template(code="UNKNOWN", body="now known"))
        assert store.get("UNKNOWN").body == "now known"
        assert len(store) == len(DEFAULT_TEMPLATES) + 1


class TestFileSystemTemplateStore:
    @pytest.fixture
    def root(self, tmp_path):
        (tmp_path / "WELCOME_EMAIL.txt").write_text("Hi {{ firstName }}\n", encoding="utf-8")
        (tmp_path / "WELCOME_EMAIL.subject.txt").write_text("Welcome!\n", encoding="utf-8")
        (tmp_path / "OTP_SMS.txt").write_text("Code {{ code }}", encoding="utf-8")
        return tmp_path

    def test_loads_body_and_subject(self, root):
        template = FileSystemTemplateStore(root).get("WELCOME_EMAIL")

        assert template.body == "Hi {{ firstName }}\n"
        assert template.subject == "Welcome!"

    def test_subject_is_optional(self, root):
        assert FileSystemTemplateStore(root).get("OTP_SMS").subject is None

    def test_unknown_code(self, root):
        assert FileSystemTemplateStore(root).get("NOPE") is None

    @pytest.mark.parametrize("code", ["../secret", "nested/OTP_SMS", ""])
    def test_rejects_path_like_codes(self, root, code):
        (root / "nested").mkdir()
        (root / "nested" / "OTP_SMS.txt").write_text("x", encoding="utf-8")

        assert FileSystemTemplateStore(root).get(code) is None

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValueError):
            FileSystemTemplateStore(tmp_path / "does-not-exist")
