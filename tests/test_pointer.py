import unittest

from stack_gc import HEADER_SIZE, Collector, CollectorConfig, InvalidHandleError


class PointerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.collector = Collector(1024, 8)
        self.collector.enter_frame()

    def test_size_matches_request(self) -> None:
        for size in (0, 1, 3, 4, 12, 100):
            pointer = self.collector.allocate(size)
            self.assertEqual(pointer.size, size)

    def test_header_precedes_data(self) -> None:
        first = self.collector.allocate(4)
        second = self.collector.allocate(3)
        self.assertEqual(first.header_address, 0)
        self.assertEqual(first.address, HEADER_SIZE)
        self.assertEqual(second.header_address, second.address - HEADER_SIZE)
        self.assertEqual(second.header_address, 8)

    def test_size_header_is_big_endian(self) -> None:
        pointer = self.collector.allocate(0x0102)
        heap = self.collector.heap
        self.assertEqual(bytes(heap[pointer.header_address:pointer.address]), b"\x00\x00\x01\x02")

    def test_size_is_read_from_header(self) -> None:
        pointer = self.collector.allocate(8)
        self.collector.heap[pointer.header_address + 3] = 5
        self.assertEqual(pointer.size, 5)

    def test_write_then_read_every_offset(self) -> None:
        pointer = self.collector.allocate(16)
        for offset in range(pointer.size):
            pointer.write(0xF0 - offset, offset)
        for offset in range(pointer.size):
            self.assertEqual(pointer.read(offset), 0xF0 - offset)

    def test_default_offset_is_start_of_data(self) -> None:
        pointer = self.collector.allocate(4)
        pointer.write(0xFF)
        self.assertEqual(pointer.read(), 0xFF)
        self.assertEqual(self.collector.heap[pointer.address], 0xFF)

    def test_write_word(self) -> None:
        pointer = self.collector.allocate(8)
        pointer.write_word(0xFFFEFDFC, 2)
        self.assertEqual([pointer.read(offset) for offset in range(2, 6)], [0xFF, 0xFE, 0xFD, 0xFC])
        self.assertEqual(pointer.read_word(2), 0xFFFEFDFC)

    def test_fill_covers_whole_block_only(self) -> None:
        first = self.collector.allocate(6)
        second = self.collector.allocate(4)
        first.fill(0xAA)
        self.assertEqual(first.data(), b"\xaa" * 6)
        self.assertEqual(second.data(), b"\x00" * 4)
        self.assertEqual(second.size, 4)

    def test_offsets_are_not_bounds_checked(self) -> None:
        first = self.collector.allocate(4)
        second = self.collector.allocate(4)
        first.write(0x7F, 8)
        self.assertEqual(second.read(0), 0x7F)

    def test_refers_to_data_address(self) -> None:
        pointer = self.collector.allocate(4)
        self.assertTrue(pointer.refers_to(pointer.address))
        self.assertFalse(pointer.refers_to(pointer.header_address))

    def test_free_zeroes_header_and_data(self) -> None:
        pointer = self.collector.allocate(10)
        pointer.fill(0x55)
        start, end = pointer.header_address, pointer.address + pointer.size
        pointer.free()
        self.assertFalse(pointer.is_valid())
        self.assertEqual(bytes(self.collector.heap[start:end]), bytes(end - start))

    def test_freed_pointer_reads_zero_without_checks(self) -> None:
        pointer = self.collector.allocate(4)
        pointer.write(9)
        pointer.free()
        self.assertEqual(pointer.read(), 0)

    def test_freed_pointer_raises_with_checks(self) -> None:
        collector = Collector(64, 4, config=CollectorConfig(64, 4, check_handles=True))
        pointer = collector.allocate(4)
        pointer.free()
        with self.assertRaises(InvalidHandleError):
            pointer.read()
        with self.assertRaises(InvalidHandleError):
            pointer.write(1)


if __name__ == "__main__":
    unittest.main()
