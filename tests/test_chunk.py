import unittest

from stack_gc import Chunk


class ChunkTests(unittest.TestCase):
    def test_size_is_end_minus_start(self) -> None:
        self.assertEqual(Chunk(4, 20).size, 16)
        self.assertEqual(Chunk(7, 7).size, 0)

    def test_rejects_inverted_range(self) -> None:
        with self.assertRaises(ValueError):
            Chunk(10, 2)

    def test_adjacency_in_either_order(self) -> None:
        left = Chunk(0, 8)
        right = Chunk(8, 16)
        self.assertTrue(left.is_adjacent(right))
        self.assertTrue(right.is_adjacent(left))
        self.assertFalse(left.is_adjacent(Chunk(9, 16)))

    def test_merge_spans_union(self) -> None:
        left = Chunk(0, 8)
        right = Chunk(8, 16)
        self.assertEqual(left.merge(right), Chunk(0, 16))
        self.assertEqual(right.merge(left), Chunk(0, 16))

    def test_merge_refuses_gaps_and_overlaps(self) -> None:
        self.assertIsNone(Chunk(0, 8).merge(Chunk(12, 16)))
        self.assertIsNone(Chunk(0, 8).merge(Chunk(4, 12)))

    def test_split_tail_keeps_end(self) -> None:
        chunk = Chunk(16, 64)
        tail = chunk.split_tail(12)
        self.assertEqual(tail, Chunk(28, 64))
        self.assertEqual(chunk, Chunk(16, 64))

    def test_contains_is_half_open(self) -> None:
        chunk = Chunk(4, 8)
        self.assertTrue(chunk.contains(4))
        self.assertTrue(chunk.contains(7))
        self.assertFalse(chunk.contains(8))


if __name__ == "__main__":
    unittest.main()
