import unittest

from petrikit.exceptions import InvariantViolation, MalformedNet
from petrikit.Net.net import PetriNet, Transition
from petrikit.Net.state import TokenState
from petrikit.Rule import Rule, compile_rule, compile_rules


class TestRuleCompiler(unittest.TestCase):
    def setUp(self) -> None:
        self.net = PetriNet.from_reactions(
            ["S", "I", "R"], {"infect": "S + I >> 2I", "recover": "I >> R"}
        )

    def test_patterns(self):
        rule = compile_rule(self.net, "infect")
        self.assertIsInstance(rule, Rule)
        self.assertEqual(rule.before, ("I", "S"))
        self.assertEqual(rule.after, ("I", "I"))
        self.assertEqual(rule.groups(), [("I", 1), ("S", 1)])
        self.assertEqual(rule.index, 0)

    def test_compile_by_index_and_object(self):
        self.assertEqual(compile_rule(self.net, 1).name, "recover")
        t = self.net.transition("recover")
        self.assertEqual(compile_rule(self.net, t), compile_rule(self.net, "recover"))

    def test_compile_rules_in_net_order(self):
        rules = compile_rules(self.net)
        self.assertEqual([r.name for r in rules], ["infect", "recover"])
        self.assertEqual([r.index for r in rules], [0, 1])

    def test_undeclared_species(self):
        net = PetriNet.labelled(["S"], [("t", {"X": 1}, {})])
        with self.assertRaises(MalformedNet):
            compile_rules(net)
        net = PetriNet.labelled(["S"], [("t", "S", "Y")])
        with self.assertRaises(MalformedNet):
            compile_rule(net, "t")

    def test_unknown_transition(self):
        with self.assertRaises(MalformedNet):
            compile_rule(self.net, "nope")

    def test_no_species(self):
        net = PetriNet.labelled([], [Transition("spawn")])
        with self.assertRaises(MalformedNet):
            compile_rules(net)

    def test_always_enabled_rule(self):
        net = PetriNet.from_reactions(["A"], {"spawn": "∅ >> A"})
        rule = compile_rule(net, "spawn")
        self.assertTrue(rule.is_always_enabled)
        self.assertEqual(rule.before, ())
        self.assertEqual(rule.bindings(()), {})


class TestRuleApply(unittest.TestCase):
    def setUp(self) -> None:
        self.net = PetriNet.from_reactions(
            ["S", "I", "R"], {"infect": "S + I >> 2I", "recover": "I >> R"}
        )
        self.state = TokenState.from_counts(self.net, S=2, I=1)  # S: 0, 1; I: 2

    def test_apply_destroys_and_creates(self):
        rule = compile_rule(self.net, "infect")
        removed, added = rule.apply(self.state, (2, 0))
        self.assertEqual(removed, {"I": (2,), "S": (0,)})
        self.assertEqual(added, {"I": (3, 4)})
        self.assertEqual(self.state.counts(), {"S": 1, "I": 2, "R": 0})
        self.assertEqual(self.state.pool("I"), (3, 4))

    def test_species_on_both_sides_is_recreated(self):
        net = PetriNet.from_reactions(["A", "E", "B"], {"cat": "A + E >> B + E"})
        state = TokenState.from_counts(net, A=1, E=1)  # A: 0; E: 1
        rule = compile_rule(net, "cat")
        removed, added = rule.apply(state, (0, 1))
        self.assertEqual(removed["E"], (1,))
        self.assertNotEqual(added["E"], removed["E"])
        self.assertEqual(state.counts(), {"A": 0, "E": 1, "B": 1})

    def test_bad_match(self):
        rule = compile_rule(self.net, "recover")
        with self.assertRaises(InvariantViolation):
            rule.bindings((2, 0))
        with self.assertRaises(InvariantViolation):
            rule.apply(self.state, (0,))  # token 0 is an S token

    def test_failed_apply_leaves_state_untouched(self):
        rule = compile_rule(self.net, "infect")
        with self.assertRaises(InvariantViolation):
            rule.apply(self.state, (2, 99))  # I token present, S token absent
        self.assertEqual(self.state.pool("I"), (2,))
        self.assertEqual(self.state.counts(), {"S": 2, "I": 1, "R": 0})


if __name__ == "__main__":
    unittest.main()
