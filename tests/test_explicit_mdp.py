import numpy as np
import pytest

from xplanning.explicit_mdp import ExplicitMDP, CostType, flatten_xmdp, sort_action_names
from xplanning.exceptions import ActionNotFoundError, AttributeNotFoundError, \
					MalformedExplicitMDPError, ProbabilityNotNormalizedError


def test_actions_are_sorted_ignoring_case():
	assert sort_action_names(['moveTo(L2)', 'fly', 'Dock', 'moveTo(L1)']) == \
			['Dock', 'fly', 'moveTo(L1)', 'moveTo(L2)']
	mdp = ExplicitMDP(2, ['b', 'A', 'c'])
	assert mdp.actions == ('A', 'b', 'c')
	assert mdp.action_index('b') == 1
	with pytest.raises(ActionNotFoundError):
		mdp.action_index('B')


def test_transition_and_cost_tables():
	mdp = ExplicitMDP(3, ['go', 'stay'], CostType.TRANSITION_COST, ['objective', 'time'])
	mdp.add_transition_probability(0, 'go', 1, 0.5)
	mdp.add_transition_probability(0, 'go', 2, 0.5)
	mdp.add_transition_probability(0, 'stay', 0, 1.0)
	mdp.add_transition_cost(1, 0, 'go', 4.0)
	mdp.check_transition_rows()

	assert mdp.is_action_applicable(0, mdp.action_index('go'))
	assert not mdp.is_action_applicable(1, mdp.action_index('go'))
	assert list(mdp.applicable_actions(0)) == [0, 1]
	assert mdp.transition_probability(0, 0, 2) == 0.5
	assert mdp.step_cost(mdp.cost_index('time'), 0, 0) == 4.0
	with pytest.raises(AttributeNotFoundError):
		mdp.cost_index('energy')
	with pytest.raises(MalformedExplicitMDPError):
		mdp.add_state_cost(1, 0, 1.0)
	with pytest.raises(ValueError):
		mdp.trans_probs[0, 0, 0] = 1.0

	x = np.zeros((3, 2))
	x[0, 0] = 2.0
	assert mdp.occupancy_cost(1, x) == pytest.approx(8.0)


def test_state_costs_apply_to_every_action():
	mdp = ExplicitMDP(2, ['go', 'stay'], CostType.STATE_COST)
	mdp.add_transition_probability(0, 'go', 1, 1.0)
	mdp.add_transition_probability(0, 'stay', 0, 1.0)
	mdp.add_state_cost(0, 0, 3.0)
	mdp.add_state_cost(0, 1, 7.0)
	# no action is applicable in 1
	assert np.array_equal(mdp.step_cost_matrix(0), [[3.0, 3.0], [0.0, 0.0]])


def test_broken_rows_are_reported():
	mdp = ExplicitMDP(2, ['go'])
	mdp.add_transition_probability(0, 'go', 1, 0.6)
	with pytest.raises(ProbabilityNotNormalizedError):
		mdp.check_transition_rows()
	with pytest.raises(MalformedExplicitMDPError):
		mdp.add_transition_probability(0, 'go', 2, 0.4)


def test_flatten_chain(chain_xmdp):
	mdp = flatten_xmdp(chain_xmdp)
	loc = chain_xmdp.state_space.get_var_def('loc')

	assert mdp.num_states == 3
	assert mdp.actions == ('a', 'b')
	assert mdp.cost_names == ('objective', 'time')
	assert [s[loc] for s in mdp.states] == ['s0', 's1', 'goal']
	assert mdp.initial_state == 0
	assert mdp.goal_states == frozenset([2])
	assert mdp.transition_probability(0, 0, 1) == 1.0
	assert mdp.transition_probability(1, 1, 2) == 1.0
	assert not mdp.is_action_applicable(0, 1)
	# the goal is absorbing
	assert len(mdp.applicable_actions(2)) == 0
	assert mdp.step_cost(0, 0, 0) == 1.0


def test_flatten_robot_rows_match_the_factored_model(robot_xmdp):
	mdp = flatten_xmdp(robot_xmdp)
	space = robot_xmdp.state_space
	loc, speed, bumped = space.get_var_def('loc'), space.get_var_def('speed'), space.get_var_def('bumped')
	actions = robot_xmdp.action_space

	# no bump is possible in L1 nor when moving slowly
	assert mdp.num_states == 9
	assert len(mdp.goal_states) == 3
	mdp.check_transition_rows()
	assert all(mdp.states[g][loc] == 'L3' for g in mdp.goal_states)

	init = mdp.states[0]
	move = mdp.action_index('moveTo(L2)')
	dests = { mdp.states[j] : mdp.transition_probability(0, move, j) \
				for j in np.flatnonzero(mdp.trans_probs[0, move])}
	assert dests == pytest.approx({init.updated({loc : 'L2'}) : 0.8,
								init.updated({loc : 'L2', bumped : True}) : 0.2})

	for i, state in enumerate(mdp.states):
		for a in mdp.applicable_actions(i):
			action = actions.get_action(mdp.action_name(a))
			pso = robot_xmdp.transition_function.get_pso_of_action(action)
			assert pso.is_action_applicable(action, state)
			# product of the effects of the action on every effect class
			expected = { state : 1.0}
			for desc in pso.action_descriptions:
				prob_effect = desc.get_probabilistic_effect_at(state, action)
				next_expected = dict()
				for partial, p in expected.items():
					for effect, q in prob_effect.items():
						dest = partial.updated(effect.values)
						next_expected[dest] = next_expected.get(dest, 0.0) + p * q
				expected = next_expected
			actual = { mdp.states[j] : mdp.transition_probability(i, a, j) \
						for j in np.flatnonzero(mdp.trans_probs[i, a])}
			assert actual == pytest.approx(expected)


def test_flatten_expected_costs(robot_xmdp):
	mdp = flatten_xmdp(robot_xmdp)
	move = mdp.action_index('moveTo(L2)')
	collision = mdp.cost_index('collision')
	# fast move from the initial state
	assert mdp.step_cost(collision, 0, move) == pytest.approx(0.2)
	assert mdp.step_cost(mdp.cost_index('time'), 0, move) == pytest.approx(1.0)
	assert mdp.step_cost(0, 0, move) == pytest.approx(1.0)


def test_flatten_with_expanded_goals(chain_xmdp):
	mdp = flatten_xmdp(chain_xmdp, expand_goals=True)
	# no action applies in the goal of the chain
	assert mdp.goal_states == frozenset([2])
	assert len(mdp.applicable_actions(2)) == 0


def test_flatten_is_deterministic(robot_xmdp):
	assert flatten_xmdp(robot_xmdp) == flatten_xmdp(robot_xmdp)
