import heapq
import itertools

import pytest
from bitarray import bitarray

import huffman as huff
from errors import CorruptStream, CorruptTree, EmptyAlphabet, TruncatedInput
from valuecodec import to_bits


def merge_cost(frequencies):
    # Optimal weighted path length equals the sum of all merged weights
    heap = list(frequencies.values())
    heapq.heapify(heap)
    cost = 0
    while len(heap) > 1:
        merged = heapq.heappop(heap) + heapq.heappop(heap)
        cost += merged
        heapq.heappush(heap, merged)
    return cost


def test_frequency_table_counts():
    ft = huff.frequency_table(b"abracadabra")
    assert ft == {ord("a"): 5, ord("b"): 2, ord("r"): 2, ord("c"): 1, ord("d"): 1}
    assert sum(ft.values()) == 11


def test_frequency_table_empty():
    assert huff.frequency_table([]) == {}


def test_build_empty_alphabet():
    with pytest.raises(EmptyAlphabet):
        huff.build_huffman_tree({})


def test_two_symbols_aaab():
    root, codes = huff.build_huffman_tree(huff.frequency_table(b"aaab"))
    assert isinstance(root, huff.HuffmanInternal)
    assert root.low.symbol == ord("b")
    assert root.high.symbol == ord("a")
    assert root.weight == 4
    assert codes == {ord("a"): bitarray("1"), ord("b"): bitarray("0")}
    assert huff.huffman_encode(b"aaab", codes) == bitarray("1110")


def test_single_symbol_gets_one_bit_code():
    root, codes = huff.build_huffman_tree({ord("a"): 4})
    assert isinstance(root, huff.HuffmanLeaf)
    assert codes == {ord("a"): bitarray("0")}
    assert huff.huffman_encode(b"aaaa", codes) == bitarray("0000")


def test_ties_prefer_most_recent_insertion():
    root, codes = huff.build_huffman_tree({ord("a"): 1, ord("b"): 1, ord("c"): 1})
    # c (inserted last) is taken first and becomes the low child of the first merge
    assert codes == {ord("a"): bitarray("0"), ord("c"): bitarray("10"), ord("b"): bitarray("11")}
    assert root.low.symbol == ord("a")
    assert root.high.low.symbol == ord("c")


def test_merged_node_counts_as_newest_on_tie():
    _, codes = huff.build_huffman_tree({ord("a"): 1, ord("b"): 1, ord("c"): 2})
    # merged (b, a) weighs 2 like c but was inserted later, so it becomes low
    assert codes == {ord("b"): bitarray("00"), ord("a"): bitarray("01"), ord("c"): bitarray("1")}


def test_clrs_optimal_cost():
    freqs = {ord("a"): 45, ord("b"): 13, ord("c"): 12, ord("d"): 16, ord("e"): 9, ord("f"): 5}
    _, codes = huff.build_huffman_tree(freqs)
    assert huff.weighted_path_length(freqs, codes) == 224
    assert len(codes[ord("a")]) == 1


@pytest.mark.parametrize("text", [b"abracadabra", b"mississippi river", bytes(range(256)) + b"zzzzzzzz"])
def test_weighted_length_is_optimal(text):
    ft = huff.frequency_table(text)
    _, codes = huff.build_huffman_tree(ft)
    assert huff.weighted_path_length(ft, codes) == merge_cost(ft)


def test_codes_prefix_free():
    ft = huff.frequency_table(b"the quick brown fox jumps over the lazy dog, again and again")
    _, codes = huff.build_huffman_tree(ft)
    for a, b in itertools.permutations(codes, 2):
        ca, cb = codes[a], codes[b]
        assert ca != cb[:len(ca)]


def test_serialize_layout():
    root, _ = huff.build_huffman_tree(huff.frequency_table(b"aaab"))
    bits = huff.serialize_tree(root)
    assert bits == bitarray("0") + bitarray("1") + to_bits(ord("b")) + bitarray("1") + to_bits(ord("a"))
    assert len(bits) == 19


def test_deserialize_consumes_exactly_serialized_bits():
    root, codes = huff.build_huffman_tree(huff.frequency_table(b"hello huffman world"))
    tree_bits = huff.serialize_tree(root)
    combined = bitarray("11") + tree_bits + bitarray("0110")
    rebuilt, consumed = huff.deserialize_tree(combined, start=2)
    assert consumed == len(tree_bits)
    assert huff.serialize_tree(rebuilt) == tree_bits


def test_deserialize_wide_symbols():
    ft = {0x1234: 3, 0xFFFF: 1, 0x0001: 2}
    root, _ = huff.build_huffman_tree(ft)
    bits = huff.serialize_tree(root, width=2)
    rebuilt, consumed = huff.deserialize_tree(bits, width=2)
    assert consumed == len(bits)
    assert huff.serialize_tree(rebuilt, width=2) == bits


def test_deserialize_single_leaf():
    bits = bitarray("1") + to_bits(42)
    root, consumed = huff.deserialize_tree(bits)
    assert isinstance(root, huff.HuffmanLeaf)
    assert root.symbol == 42
    assert consumed == 9


def test_deserialize_truncated_mid_leaf():
    root, _ = huff.build_huffman_tree(huff.frequency_table(b"aaab"))
    bits = huff.serialize_tree(root)
    with pytest.raises(TruncatedInput):
        huff.deserialize_tree(bits[:-3])


def test_deserialize_truncated_mid_subtree():
    with pytest.raises(TruncatedInput):
        huff.deserialize_tree(bitarray("0") + bitarray("1") + to_bits(1))
    with pytest.raises(TruncatedInput):
        huff.deserialize_tree(bitarray("0" * 5000))
    with pytest.raises(TruncatedInput):
        huff.deserialize_tree(bitarray())


def test_deserialize_duplicate_leaf():
    bits = bitarray("0") + bitarray("1") + to_bits(7) + bitarray("1") + to_bits(7)
    with pytest.raises(CorruptTree):
        huff.deserialize_tree(bits)


def test_decode_walks_tree():
    ft = huff.frequency_table(b"abracadabra")
    root, codes = huff.build_huffman_tree(ft)
    encoded = huff.huffman_encode(b"abracadabra", codes)
    assert bytes(huff.huffman_decode(encoded, root)) == b"abracadabra"
    assert bytes(huff.huffman_decode(bitarray("101") + encoded, root, start=3)) == b"abracadabra"


def test_decode_stops_mid_codeword():
    root, _ = huff.build_huffman_tree({ord("a"): 1, ord("b"): 1, ord("c"): 1})
    with pytest.raises(TruncatedInput):
        huff.huffman_decode(bitarray("01"), root)


def test_decode_single_leaf():
    leaf = huff.HuffmanLeaf(ord("z"))
    assert huff.huffman_decode(bitarray("000"), leaf) == [ord("z")] * 3
    assert huff.huffman_decode(bitarray(), leaf) == []
    with pytest.raises(CorruptStream):
        huff.huffman_decode(bitarray("010"), leaf)


def test_encode_unknown_symbol():
    _, codes = huff.build_huffman_tree({1: 1, 2: 1})
    with pytest.raises(KeyError):
        huff.huffman_encode([1, 3], codes)
