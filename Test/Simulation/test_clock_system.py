import unittest

from petrikit.Clock import Deterministic, Exponential
from petrikit.exceptions import MalformedNet, MissingDistribution
from petrikit.Net.net import PetriNet
from petrikit.Net.state import TokenState
from petrikit.Simulation import SimulationContext, SimulationDriver, to_clock_system


def sir_net() -> PetriNet:
    return PetriNet.from_reactions(
        ["S", "I", "R"], {"infect": "S + I >> 2I", "recover": "I >> R"}
    )


DISTS = {"infect": Exponential(0.5), "recover": Exponential(1.0)}


class TestToClockSystem(unittest.TestCase):
    def test_one_clock_per_initial_match(self):
        system = to_clock_system(sir_net(), {"S": 5, "I": 1}, DISTS, seed=1)
        self.assertEqual(len(system.bank), 6)
        self.assertEqual(len(system.bank.keys("infect")), 5)
        self.assertEqual(len(system.bank.keys("recover")), 1)
        keys = system.bank.keys()
        self.assertTrue(all(k[0] == "infect" for k in keys[:5]))
        self.assertEqual(len(system.indices["infect"]), 5)

    def test_initial_state_forms(self):
        net = sir_net()
        a = to_clock_system(net, [5, 1, 0], DISTS, seed=1)
        b = to_clock_system(net, TokenState.from_counts(net, S=5, I=1), DISTS, seed=1)
        self.assertEqual(a.state.counts(), b.state.counts())
        empty = to_clock_system(net, None, DISTS, seed=1)
        self.assertEqual(len(empty.bank), 0)

    def test_initial_state_is_copied(self):
        net = sir_net()
        init = TokenState.from_counts(net, S=5, I=1)
        system = to_clock_system(net, init, DISTS, seed=1)
        SimulationDriver(system).step()
        self.assertEqual(init.counts(), {"S": 5, "I": 1, "R": 0})

    def test_mismatched_state(self):
        other = PetriNet.from_reactions(["X"], {"t": "X >> 0"})
        with self.assertRaises(MalformedNet):
            to_clock_system(sir_net(), TokenState.empty(other), DISTS)

    def test_missing_distribution(self):
        with self.assertRaises(MissingDistribution):
            to_clock_system(sir_net(), {"S": 1}, {"infect": Exponential(1.0)})

    def test_malformed_net(self):
        net = PetriNet.labelled(["S"], [("t", "S", "Z")])
        with self.assertRaises(MalformedNet):
            to_clock_system(net, {"S": 1}, {"t": Exponential(1.0)})

    def test_context_time_used_for_enable(self):
        ctx = SimulationContext.from_seed(0, now=2.0)
        system = to_clock_system(
            sir_net(), {"I": 1}, {"infect": Deterministic(1.0), "recover": Deterministic(1.0)},
            context=ctx,
        )
        clock = system.bank.peek_min()
        self.assertEqual(clock.enabled_at, 2.0)
        self.assertEqual(clock.fire_time, 3.0)
        self.assertIs(system.context, ctx)

    def test_dependents_and_lookup(self):
        system = to_clock_system(sir_net(), {"S": 1}, DISTS)
        self.assertEqual(system.dependents["I"], ("infect", "recover"))
        self.assertEqual(system.dependents["R"], ())
        self.assertEqual(system.rule("recover").name, "recover")
        self.assertEqual(system.always_enabled(), ())


if __name__ == "__main__":
    unittest.main()
