import unittest

from stack_gc import candidate_addresses


class CandidateAddressTests(unittest.TestCase):
    def test_every_byte_offset_is_a_window(self) -> None:
        window = bytes([0x00, 0x00, 0x00, 0x10, 0x20])
        self.assertEqual(candidate_addresses(window), {0x10, 0x1020})

    def test_exact_word(self) -> None:
        self.assertEqual(candidate_addresses(b"\x01\x02\x03\x04"), {0x01020304})

    def test_short_window_has_no_candidates(self) -> None:
        self.assertEqual(candidate_addresses(b"\x00\x01\x02"), set())
        self.assertEqual(candidate_addresses(b""), set())

    def test_window_count(self) -> None:
        window = bytes(range(1, 13))
        self.assertEqual(len(candidate_addresses(window)), 9)


if __name__ == "__main__":
    unittest.main()
