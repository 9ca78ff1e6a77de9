from kbot.utils import matched_prefixes


def test_regex_prefix_variants():
    assert matched_prefixes("bot, help", default="!") == ["bot,", "!"]
    assert matched_prefixes("Hey  BOT help", default="!") == ["Hey  BOT ", "!"]
    assert matched_prefixes("bot!help", default="!") == ["bot!", "!"]


def test_plain_messages_only_get_configured_prefix():
    assert matched_prefixes("!help", default="!") == ["!"]
    assert matched_prefixes("robot help", default="!") == ["!"]
    assert matched_prefixes("", default="?") == ["?"]
