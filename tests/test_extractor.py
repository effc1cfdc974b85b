import unittest

from document.extractor import EXTRACTION_RULES, extract_document, match_rule


class BoundedRuleTests(unittest.TestCase):
    def test_prose_around_document_is_dropped(self):
        doc = "<!DOCTYPE html><html><body>hi</body></html>"
        text = "Sure! Here it is:\n" + doc + "\nHope this helps."
        self.assertEqual(extract_document(text), doc)

    def test_fenced_complete_document_uses_bounded_rule(self):
        text = "```html\n<!DOCTYPE html><html></html>\n```"
        rule, doc = match_rule(text)
        self.assertEqual(rule, "bounded")
        self.assertEqual(doc, "<!DOCTYPE html><html></html>")

    def test_markers_are_case_insensitive(self):
        doc = "<!doctype HTML><HTML><BODY></BODY></HTML>"
        self.assertEqual(extract_document("x " + doc + " y"), doc)

    def test_html_tag_without_doctype(self):
        text = "Output:\n<html lang=\"en\"><head></head></html> trailing"
        self.assertEqual(extract_document(text), "<html lang=\"en\"><head></head></html>")

    def test_bounded_wins_over_fenced_span(self):
        text = "```html\n<html>A\n```\n<!DOCTYPE html><html>B</html>"
        rule, doc = match_rule(text)
        self.assertEqual(rule, "bounded")
        self.assertTrue(doc.startswith("<html>A"))
        self.assertTrue(doc.endswith("<html>B</html>"))


class FencedRuleTests(unittest.TestCase):
    def test_fenced_block_without_closing_tag(self):
        text = (
            "Here:\n```html\n<!DOCTYPE html>\n<html><body><script>x()</script>\n```\nDone"
        )
        rule, doc = match_rule(text)
        self.assertEqual(rule, "fenced")
        self.assertEqual(doc, "<!DOCTYPE html>\n<html><body><script>x()</script>\n")

    def test_untagged_fence(self):
        text = "```\n<html><body>\n```"
        self.assertEqual(extract_document(text), "<html><body>\n")


class TailRuleTests(unittest.TestCase):
    def test_truncated_document_with_trailing_fence(self):
        text = "<html><head></head><body><script>let a = 1;\n```"
        rule, doc = match_rule(text)
        self.assertEqual(rule, "tail")
        self.assertEqual(doc, "<html><head></head><body><script>let a = 1;\n")

    def test_truncated_document_without_fence(self):
        self.assertEqual(extract_document("text <html><body>partial"), "<html><body>partial")

    def test_postamble_after_trailing_fence_is_stripped(self):
        text = "Sure:\n<html><body>\n```\nLet me know!"
        self.assertEqual(extract_document(text), "<html><body>\n")


class FallbackTests(unittest.TestCase):
    def test_no_marker_returns_trimmed_input(self):
        rule, doc = match_rule("  just some prose \n")
        self.assertIsNone(rule)
        self.assertEqual(doc, "just some prose")

    def test_fallback_is_idempotent(self):
        text = "\n  I could not build that model.  "
        once = extract_document(text)
        self.assertEqual(extract_document(once), once)

    def test_empty_input(self):
        self.assertEqual(extract_document(""), "")
        self.assertEqual(extract_document(None), "")

    def test_rule_order(self):
        self.assertEqual([r.name for r in EXTRACTION_RULES], ["bounded", "fenced", "tail"])


if __name__ == "__main__":
    unittest.main()
