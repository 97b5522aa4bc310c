import unittest

from petrikit.Net.multiset import Multiset


class TestMultiset(unittest.TestCase):
    def test_from_str_coefficients(self):
        self.assertEqual(Multiset.from_str("2A + B").to_dict(), {"A": 2, "B": 1})
        self.assertEqual(Multiset.from_str("2*I").to_dict(), {"I": 2})
        self.assertEqual(Multiset.from_str("2 S1 + S2").to_dict(), {"S1": 2, "S2": 1})
        self.assertEqual(Multiset.from_str("S + I").to_dict(), {"S": 1, "I": 1})

    def test_from_str_repeated_terms_accumulate(self):
        self.assertEqual(Multiset.from_str("A + A + 2B").to_dict(), {"A": 2, "B": 2})

    def test_empty_side_tokens(self):
        for side in ("", "  ", "∅", "0", "Ø"):
            self.assertEqual(len(Multiset.from_str(side)), 0, side)
            self.assertFalse(Multiset.from_str(side))

    def test_coefficient_without_species_rejected(self):
        with self.assertRaises(ValueError):
            Multiset.from_str("2 + A")

    def test_mixed_items_are_summed(self):
        m = Multiset([("A", 2), "B", "A", ("C", 0), ("D", -1), ""])
        self.assertEqual(m.to_dict(), {"A": 3, "B": 1})
        self.assertEqual(Multiset({1: 2}).to_dict(), {"1": 2})

    def test_from_any_variants(self):
        self.assertEqual(Multiset.from_any(["A", "A", "B"]).to_dict(), {"A": 2, "B": 1})
        self.assertEqual(Multiset.from_any([("C", 2), ("D", 1)]).to_dict(), {"C": 2, "D": 1})
        self.assertEqual(Multiset.from_any({"A": 0, "B": 1}).to_dict(), {"B": 1})
        self.assertEqual(len(Multiset.from_any(None)), 0)
        m = Multiset({"X": 3})
        self.assertIs(Multiset.from_any(m), m)

    def test_elements_sorted_by_species(self):
        self.assertEqual(Multiset({"B": 1, "A": 2}).elements(), ["A", "A", "B"])

    def test_total_and_species(self):
        m = Multiset({"A": 2, "B": 3})
        self.assertEqual(m.total(), 5)
        self.assertEqual(m.species(), {"A", "B"})
        self.assertIn("A", m)
        self.assertEqual(m.get("Z", 0), 0)

    def test_equality_and_hash(self):
        a = Multiset.from_str("2A + B")
        b = Multiset({"B": 1, "A": 2})
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertNotEqual(a, Multiset({"A": 1, "B": 1}))

    def test_repr(self):
        self.assertEqual(repr(Multiset({"S": 1, "I": 2})), "2I + S")
        self.assertEqual(repr(Multiset()), "∅")


if __name__ == "__main__":
    unittest.main()
