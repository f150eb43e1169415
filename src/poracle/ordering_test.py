from poracle.ordering import TEXT_ORDERING, build_byte_ordering


class TestBuildByteOrdering:
    """Test suite for build_byte_ordering"""

    def test_empty_hint(self):
        """No hint gives plain ascending order"""
        assert build_byte_ordering() == bytes(range(256))
        assert build_byte_ordering(b"") == bytes(range(256))

    def test_hint_first_then_rest_ascending(self):
        """Hint values lead, the remaining values follow in ascending order"""
        ordering = build_byte_ordering(b"\x05\x01")
        assert ordering[:2] == b"\x05\x01"
        assert ordering[2:] == bytes(v for v in range(256) if v not in (1, 5))

    def test_duplicates_keep_first_position(self):
        """Repeated hint values are only used once, at their first position"""
        ordering = build_byte_ordering(b"abca\x00b")
        assert ordering[:4] == b"abc\x00"
        assert len(ordering) == 256
        assert sorted(ordering) == list(range(256))

    def test_full_hint(self):
        """A complete hint is returned unchanged"""
        hint = bytes(reversed(range(256)))
        assert build_byte_ordering(hint) == hint

    def test_str_and_int_hints(self):
        """Strings and iterables of ints are accepted too"""
        assert build_byte_ordering("zy")[:2] == b"zy"
        assert build_byte_ordering([200, 3, 200])[:2] == bytes([200, 3])

    def test_text_ordering_is_total(self):
        """The built-in text ordering expands to a permutation with space first"""
        ordering = build_byte_ordering(TEXT_ORDERING)
        assert len(ordering) == 256
        assert set(ordering) == set(range(256))
        assert ordering[0] == ord(" ")
        # Control bytes other than tab/newline/CR come last.
        assert ordering.index(0x00) > ordering.index(ord("~"))
