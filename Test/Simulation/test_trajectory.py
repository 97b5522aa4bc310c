import unittest

import pandas as pd

from petrikit.Clock import Exponential
from petrikit.Net.net import PetriNet
from petrikit.Simulation import FiringRecord, SimulationContext, Trajectory, run


class TestTrajectory(unittest.TestCase):
    def test_from_records(self):
        records = [
            FiringRecord(1.0, "recover", (5,), consumed={"I": (5,)}, produced={"R": (6,)}),
        ]
        traj = Trajectory.from_records({"S": 5, "I": 1, "R": 0}, records)
        self.assertEqual(len(traj), 2)
        self.assertEqual(traj.final(), {"S": 5, "I": 0, "R": 1})
        self.assertEqual(traj.times, [0.0, 1.0])
        self.assertEqual(traj.transitions, [None, "recover"])

    def test_to_frame(self):
        records = [
            FiringRecord(0.5, "infect", (1, 0), consumed={"I": (1,), "S": (0,)},
                         produced={"I": (2, 3)}),
        ]
        df = Trajectory.from_records({"S": 1, "I": 1, "R": 0}, records).to_frame()
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(list(df.columns), ["time", "transition", "S", "I", "R"])
        self.assertEqual(df.loc[1, "I"], 2)
        self.assertEqual(df.loc[1, "S"], 0)
        self.assertTrue(pd.isna(df.loc[0, "transition"]))
        self.assertEqual(df.loc[1, "transition"], "infect")

    def test_result_trajectory_matches_final_counts(self):
        net = PetriNet.from_reactions(
            ["S", "I", "R"], {"infect": "S + I >> 2I", "recover": "I >> R"}
        )
        res = run(
            net,
            {"infect": Exponential(0.4), "recover": Exponential(1.0)},
            {"S": 10, "I": 1},
            seed=8,
        )
        traj = res.trajectory()
        self.assertEqual(len(traj), res.n_events + 1)
        self.assertEqual(traj.final(), res.final_counts)
        self.assertEqual(traj.counts[0], res.initial_counts)

    def test_trajectory_starts_at_context_time(self):
        net = PetriNet.from_reactions(["A", "B"], {"t": "A >> B"})
        ctx = SimulationContext.from_seed(1, now=4.0)
        res = run(net, {"t": Exponential(1.0)}, {"A": 2}, context=ctx)
        self.assertEqual(res.start_time, 4.0)
        traj = res.trajectory()
        self.assertEqual(traj.times[0], 4.0)
        self.assertTrue(all(t > 4.0 for t in traj.times[1:]))
        self.assertEqual(traj.to_frame().loc[0, "time"], 4.0)


if __name__ == "__main__":
    unittest.main()
