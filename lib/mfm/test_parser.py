"""
Tests for the MFM parser entry points.

This module checks parse() against reference fixtures for every construct,
the composite document, the round trip through toString(), and the inspect
and extract helpers.
"""

import unittest

from . import (
    BOLD,
    CENTER,
    CODE_BLOCK,
    EMOJI_CODE,
    FN,
    HASHTAG,
    ITALIC,
    LINK,
    MATH_BLOCK,
    MENTION,
    N_URL,
    QUOTE,
    SEARCH,
    SMALL,
    STRIKE,
    TEXT,
    UNI_EMOJI,
    MfmParser,
    MfmResourceLimitError,
    ParserConfig,
    createNode,
    extract,
    inspect,
    parse,
    parsePlain,
    toString,
)

COMPOSITE = """before
<center>
Hello [tada everynyan! 🎉]

I'm @ai, A bot of misskey!

https://github.com/syuilo/ai
</center>
after"""


class TestText(unittest.TestCase):
    """Plain text and degenerate input."""

    def testBasic(self):
        self.assertEqual(parse("abc"), [TEXT("abc")])

    def testEmptyInput(self):
        self.assertEqual(parse(""), [])

    def testNonStringInput(self):
        with self.assertRaises(TypeError):
            parse(None)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            parse(b"abc")  # type: ignore[arg-type]


class TestQuote(unittest.TestCase):
    """Quote blocks."""

    def testSingle(self):
        self.assertEqual(parse("> abc"), [QUOTE([TEXT("abc")])])

    def testMultiple(self):
        self.assertEqual(parse("\n> abc\n> 123\n"), [QUOTE([TEXT("abc\n123")])])

    def testNestedCenter(self):
        self.assertEqual(
            parse("\n> <center>\n> a\n> </center>\n"),
            [QUOTE([CENTER([TEXT("a")])])],
        )

    def testNestedCenterWithMention(self):
        self.assertEqual(
            parse("\n> <center>\n> I'm @ai, An bot of misskey!\n> </center>\n"),
            [
                QUOTE(
                    [
                        CENTER(
                            [
                                TEXT("I'm "),
                                MENTION("ai", None, "@ai"),
                                TEXT(", An bot of misskey!"),
                            ]
                        )
                    ]
                )
            ],
        )

    def testNestedQuote(self):
        self.assertEqual(parse("> > abc"), [QUOTE([QUOTE([TEXT("abc")])])])


class TestSearch(unittest.TestCase):
    """Search lines with every accepted keyword."""

    def testKeywords(self):
        for keyword in ["Search", "[Search]", "search", "[search]", "検索", "[検索]"]:
            with self.subTest(keyword=keyword):
                text = f"MFM 書き方 123 {keyword}"
                self.assertEqual(
                    parse(text),
                    [createNode("search", {"query": "MFM 書き方 123", "content": text})],
                )

    def testWithText(self):
        self.assertEqual(
            parse("abc\nhoge piyo bebeyo 検索\n123"),
            [
                TEXT("abc"),
                SEARCH("hoge piyo bebeyo", "hoge piyo bebeyo 検索"),
                TEXT("123"),
            ],
        )

    def testKeywordAloneIsText(self):
        self.assertEqual(parse("Search"), [TEXT("Search")])


class TestCodeBlock(unittest.TestCase):
    """Fenced code blocks."""

    def testBasic(self):
        self.assertEqual(parse("```\nabc\n```"), [CODE_BLOCK("abc", None)])

    def testMultiLine(self):
        self.assertEqual(parse("```\na\nb\nc\n```"), [CODE_BLOCK("a\nb\nc", None)])

    def testLang(self):
        self.assertEqual(parse("```js\nconst a = 1;\n```"), [CODE_BLOCK("const a = 1;", "js")])

    def testWithText(self):
        self.assertEqual(
            parse("abc\n```\nconst abc = 1;\n```\n123"),
            [TEXT("abc"), CODE_BLOCK("const abc = 1;", None), TEXT("123")],
        )

    def testBodyIsVerbatim(self):
        self.assertEqual(
            parse("```\n**not bold** @nobody\n```"),
            [CODE_BLOCK("**not bold** @nobody", None)],
        )


class TestMathBlock(unittest.TestCase):
    """Math blocks anchored to line boundaries."""

    def testSingle(self):
        self.assertEqual(parse("\\[math1\\]"), [MATH_BLOCK("math1")])

    def testBetweenText(self):
        self.assertEqual(
            parse("123\n\\[math1\\]\nabc\n\\[math2\\]"),
            [TEXT("123"), MATH_BLOCK("math1"), TEXT("abc"), MATH_BLOCK("math2")],
        )

    def testSurroundingText(self):
        self.assertEqual(
            parse("abc\n\\[math1\\]\n123"),
            [TEXT("abc"), MATH_BLOCK("math1"), TEXT("123")],
        )

    def testTwoOnOneLine(self):
        self.assertEqual(parse("\\[aaa\\]\\[bbb\\]"), [TEXT("\\[aaa\\]\\[bbb\\]")])

    def testCloseNotAtLineEnd(self):
        self.assertEqual(parse("\\[aaa\\]after"), [TEXT("\\[aaa\\]after")])

    def testOpenNotAtLineStart(self):
        self.assertEqual(parse("before\\[aaa\\]"), [TEXT("before\\[aaa\\]")])


class TestCenter(unittest.TestCase):
    """Centered regions."""

    def testSingleText(self):
        self.assertEqual(parse("<center>abc</center>"), [CENTER([TEXT("abc")])])

    def testMultipleText(self):
        self.assertEqual(
            parse("before\n<center>\nabc\n123\n\npiyo\n</center>\nafter"),
            [TEXT("before"), CENTER([TEXT("abc\n123\n\npiyo")]), TEXT("after")],
        )


class TestEmoji(unittest.TestCase):
    """Emoji codes and unicode emoji."""

    def testEmojiCode(self):
        self.assertEqual(parse(":abc:"), [EMOJI_CODE("abc")])

    def testUnicodeEmoji(self):
        self.assertEqual(parse("今起きた😇"), [TEXT("今起きた"), UNI_EMOJI("😇")])


class TestBig(unittest.TestCase):
    """`***text***` is parsed as the tada function."""

    def testBasic(self):
        self.assertEqual(parse("***abc***"), [FN("tada", {}, [TEXT("abc")])])

    def testInlineContent(self):
        self.assertEqual(
            parse("***123**abc**123***"),
            [FN("tada", {}, [TEXT("123"), BOLD([TEXT("abc")]), TEXT("123")])],
        )

    def testMultiLine(self):
        self.assertEqual(
            parse("***123\n**abc**\n123***"),
            [FN("tada", {}, [TEXT("123\n"), BOLD([TEXT("abc")]), TEXT("\n123")])],
        )


class TestBold(unittest.TestCase):
    """Bold text."""

    def testBasic(self):
        self.assertEqual(parse("**abc**"), [BOLD([TEXT("abc")])])

    def testInlineContent(self):
        self.assertEqual(
            parse("**123~~abc~~123**"),
            [BOLD([TEXT("123"), STRIKE([TEXT("abc")]), TEXT("123")])],
        )

    def testMultiLine(self):
        self.assertEqual(
            parse("**123\n~~abc~~\n123**"),
            [BOLD([TEXT("123\n"), STRIKE([TEXT("abc")]), TEXT("\n123")])],
        )

    def testUnclosed(self):
        self.assertEqual(parse("**abc"), [TEXT("**abc")])


class TestSmall(unittest.TestCase):
    """Small text."""

    def testBasic(self):
        self.assertEqual(parse("<small>abc</small>"), [SMALL([TEXT("abc")])])

    def testInlineContent(self):
        self.assertEqual(
            parse("<small>abc**123**abc</small>"),
            [SMALL([TEXT("abc"), BOLD([TEXT("123")]), TEXT("abc")])],
        )

    def testMultiLine(self):
        self.assertEqual(
            parse("<small>abc\n**123**\nabc</small>"),
            [SMALL([TEXT("abc\n"), BOLD([TEXT("123")]), TEXT("\nabc")])],
        )


class TestItalic(unittest.TestCase):
    """Italic tag and shorthand."""

    def testTag(self):
        self.assertEqual(parse("<i>abc</i>"), [ITALIC([TEXT("abc")])])

    def testTagInlineContent(self):
        self.assertEqual(
            parse("<i>abc**123**abc</i>"),
            [ITALIC([TEXT("abc"), BOLD([TEXT("123")]), TEXT("abc")])],
        )

    def testTagMultiLine(self):
        self.assertEqual(
            parse("<i>abc\n**123**\nabc</i>"),
            [ITALIC([TEXT("abc\n"), BOLD([TEXT("123")]), TEXT("\nabc")])],
        )

    def testShorthand(self):
        self.assertEqual(parse("*abc*"), [ITALIC([TEXT("abc")])])


class TestHashtag(unittest.TestCase):
    """Hashtags."""

    def testAfterKeycapEmoji(self):
        self.assertEqual(
            parse("#️⃣abc123#abc"),
            [UNI_EMOJI("#️⃣"), TEXT("abc123"), HASHTAG("abc")],
        )


class TestUrl(unittest.TestCase):
    """Bare URLs."""

    def testTrailingPeriod(self):
        self.assertEqual(
            parse("official instance: https://misskey.io/@ai."),
            [TEXT("official instance: "), N_URL("https://misskey.io/@ai"), TEXT(".")],
        )


class TestLink(unittest.TestCase):
    """Links and silent links."""

    def testBasic(self):
        self.assertEqual(
            parse("[official instance](https://misskey.io/@ai)."),
            [LINK(False, "https://misskey.io/@ai", [TEXT("official instance")]), TEXT(".")],
        )

    def testSilent(self):
        self.assertEqual(
            parse("?[official instance](https://misskey.io/@ai)."),
            [LINK(True, "https://misskey.io/@ai", [TEXT("official instance")]), TEXT(".")],
        )

    def testUrlShapedLabel(self):
        self.assertEqual(
            parse("official instance: [https://misskey.io/@ai](https://misskey.io/@ai)."),
            [
                TEXT("official instance: "),
                LINK(False, "https://misskey.io/@ai", [TEXT("https://misskey.io/@ai")]),
                TEXT("."),
            ],
        )

    def testLinkShapedLabel(self):
        self.assertEqual(
            parse("official instance: [[https://misskey.io/@ai](https://misskey.io/@ai)](https://misskey.io/@ai)."),
            [
                TEXT("official instance: "),
                LINK(
                    False,
                    "https://misskey.io/@ai",
                    [TEXT("[https://misskey.io/@ai](https://misskey.io/@ai)")],
                ),
                TEXT("."),
            ],
        )


class TestFn(unittest.TestCase):
    """Functions."""

    def testBasic(self):
        self.assertEqual(parse("[tada abc]"), [FN("tada", {}, [TEXT("abc")])])


class TestComposite(unittest.TestCase):
    """A document mixing blocks and inline constructs."""

    def testParse(self):
        self.assertEqual(
            parse(COMPOSITE),
            [
                TEXT("before"),
                CENTER(
                    [
                        TEXT("Hello "),
                        FN("tada", {}, [TEXT("everynyan! "), UNI_EMOJI("🎉")]),
                        TEXT("\n\nI'm "),
                        MENTION("ai", None, "@ai"),
                        TEXT(", A bot of misskey!\n\n"),
                        N_URL("https://github.com/syuilo/ai"),
                    ]
                ),
                TEXT("after"),
            ],
        )

    def testToString(self):
        self.assertEqual(toString(parse(COMPOSITE)), COMPOSITE)


class TestTreeHelpers(unittest.TestCase):
    """inspect() and extract() on parsed documents."""

    def testInspectReplacesText(self):
        result = parse("good morning [tada everynyan!]")

        def replaceGreeting(node):
            if node.type == "text":
                node.props["text"] = node.props["text"].replace("good morning", "hello")

        inspect(result, replaceGreeting)
        self.assertEqual(toString(result), "hello [tada everynyan!]")

    def testExtractEmojiCodes(self):
        nodes = parse("abc:hoge:[tada 123:hoge:]:piyo:")
        self.assertEqual(
            extract(nodes, "emojiCode"),
            [EMOJI_CODE("hoge"), EMOJI_CODE("hoge"), EMOJI_CODE("piyo")],
        )


class TestParsePlain(unittest.TestCase):
    """Restricted grammar for plain text."""

    def testRecognizedConstructs(self):
        self.assertEqual(
            parsePlain("Ai :ai_nya: 🎉 #misskey"),
            [TEXT("Ai "), EMOJI_CODE("ai_nya"), TEXT(" "), UNI_EMOJI("🎉"), TEXT(" "), HASHTAG("misskey")],
        )

    def testMarkupStaysText(self):
        for text in ["**bold**", "<center>abc</center>", "> quote", "[tada abc]", "`code`"]:
            with self.subTest(text=text):
                self.assertEqual(parsePlain(text), [TEXT(text)])

    def testMentionAndUrl(self):
        self.assertEqual(
            parsePlain("@ai https://misskey.io"),
            [MENTION("ai", None, "@ai"), TEXT(" "), N_URL("https://misskey.io")],
        )


class TestMfmParser(unittest.TestCase):
    """The reusable parser object."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = MfmParser()

    def testReuse(self):
        self.assertEqual(self.parser.parse("**a**"), [BOLD([TEXT("a")])])
        self.assertEqual(self.parser.parse("**b**"), [BOLD([TEXT("b")])])

    def testGetAstJson(self):
        self.assertEqual(
            self.parser.getAstJson("**a** :b:"),
            [
                {"type": "bold", "props": {}, "children": [{"type": "text", "props": {"text": "a"}}]},
                {"type": "text", "props": {"text": " "}},
                {"type": "emojiCode", "props": {"name": "b"}},
            ],
        )

    def testStats(self):
        self.parser.parse("before\n<center>\n**a**\n</center>")
        stats = self.parser.getStats()
        self.assertEqual(stats["inputLength"], 31)
        self.assertEqual(stats["topLevelNodes"], 2)
        self.assertEqual(stats["blocksParsed"], 1)
        self.assertEqual(stats["maxDepth"], 2)

        # Statistics belong to the last call only
        self.parser.parse("abc")
        self.assertEqual(self.parser.getStats()["blocksParsed"], 0)

    def testMaxInputLength(self):
        parser = MfmParser(ParserConfig(maxInputLength=5))
        self.assertEqual(parser.parse("abcde"), [TEXT("abcde")])
        with self.assertRaises(MfmResourceLimitError) as context:
            parser.parse("abcdef")
        self.assertEqual(context.exception.limit, 5)
        self.assertEqual(context.exception.actual, 6)

    def testMaxDepth(self):
        parser = MfmParser(ParserConfig(maxDepth=3))
        self.assertEqual(
            parser.parse("**~~<i>a</i>~~**"),
            [BOLD([STRIKE([ITALIC([TEXT("a")])])])],
        )
        with self.assertRaises(MfmResourceLimitError):
            parser.parse("**~~<i><small>a</small></i>~~**")

    def testDeepNestingTerminates(self):
        text = "<small>" * 300 + "a" + "</small>" * 300
        with self.assertRaises(MfmResourceLimitError):
            parse(text)

    def testUnclosedRunsTerminate(self):
        text = "**" * 30 + "[tada " * 30 + "<small>" * 30
        nodes = parse(text)
        self.assertEqual(nodes, [TEXT(text)])


if __name__ == "__main__":
    unittest.main()
