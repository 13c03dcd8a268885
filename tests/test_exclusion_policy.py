from crbundler.core.closure import ExclusionPolicy, NamePatternMatcher, PathMarkerMatcher, PathPrefixMatcher


def test_glob_and_substring_patterns():
    policy = ExclusionPolicy.build(["libGL.so*", "libxcb"])

    assert policy.is_excluded("libGL.so.1")
    assert policy.is_excluded("/usr/lib/x86_64-linux-gnu/libxcb-shm.so.0")
    assert not policy.is_excluded("libGLU.so.1")
    assert not policy.is_excluded("libssl.so.3")


def test_matcher_order_is_patterns_then_prefixes_then_markers():
    policy = ExclusionPolicy.build(
        ["libSystem*"],
        system_prefixes=["/usr/lib/"],
        path_markers=[".framework"],
    )

    assert [type(m) for m in policy.matchers] == [NamePatternMatcher, PathPrefixMatcher, PathMarkerMatcher]
    assert policy.match("/usr/lib/libSystem.B.dylib").describe() == "pattern:libSystem*"
    assert policy.match("/usr/lib/libc++.1.dylib").describe() == "prefix:/usr/lib/"
    assert policy.match("@rpath/QtCore.framework/Versions/A/QtCore").describe() == "marker:.framework"
    assert policy.match("/opt/homebrew/lib/libpng16.16.dylib") is None


def test_blank_entries_are_ignored():
    policy = ExclusionPolicy.build(["", "  ", "libz"], system_prefixes=[""])

    assert policy.patterns == ["libz"]
    assert len(policy.matchers) == 1
