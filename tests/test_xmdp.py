import numpy as np
import pytest

from xplanning.explicit_mdp import flatten_xmdp
from xplanning.modeling.state_space import StateVarDefinition, StateVarTuple, StateSpace, \
					Action, ActionDefinition, ActionSpace
from xplanning.modeling.xmdp import QAFunction, CostFunction, XMDP
from xplanning.modeling.objectives import AttributeConstraint, BoundType, \
					LinearPenaltyFunction, QuadraticPenaltyFunction
from xplanning.policy import Policy
from xplanning.exceptions import VarNotFoundError, ActionNotFoundError, AttributeNotFoundError


def test_cost_function_is_additive():
	time_qa = QAFunction('time', lambda src, action, dest : 2.0)
	energy_qa = QAFunction('energy', lambda src, action, dest : 3.0)
	cost = CostFunction({time_qa : 0.5, energy_qa : 2.0}, offset=1.0)
	assert cost.value(None, None, None) == pytest.approx(1.0 + 0.5 * 2.0 + 2.0 * 3.0)
	assert cost.get_scaling_const(energy_qa) == 2.0
	with pytest.raises(AttributeNotFoundError):
		cost.get_scaling_const(QAFunction('noise', lambda src, action, dest : 0.0))


def test_model_lookups(chain_xmdp):
	assert chain_xmdp.get_qa_function('time').name == 'time'
	with pytest.raises(AttributeNotFoundError):
		chain_xmdp.get_qa_function('energy')
	loc = chain_xmdp.state_space.get_var_def('loc')
	assert chain_xmdp.make_state(loc='s1') == StateVarTuple({loc : 's1'})
	with pytest.raises(VarNotFoundError):
		chain_xmdp.make_state(speed='fast')


def test_incomplete_initial_state_is_rejected(chain_xmdp):
	extra = StateVarDefinition('battery', [0, 1])
	with pytest.raises(VarNotFoundError):
		XMDP(StateSpace(list(chain_xmdp.state_space) + [extra]), chain_xmdp.action_space,
			chain_xmdp.initial_state, chain_xmdp.goal, chain_xmdp.transition_function,
			chain_xmdp.cost_function, chain_xmdp.qa_functions)


def test_actions_without_pso_are_rejected(chain_xmdp):
	actions = ActionSpace(list(chain_xmdp.action_space.action_definitions) \
					+ [ActionDefinition('wait', [Action('wait')])])
	with pytest.raises(ActionNotFoundError):
		XMDP(chain_xmdp.state_space, actions, chain_xmdp.initial_state, chain_xmdp.goal,
			chain_xmdp.transition_function, chain_xmdp.cost_function, chain_xmdp.qa_functions)


def test_cost_function_over_unknown_qa_is_rejected(chain_xmdp):
	energy_qa = QAFunction('energy', lambda src, action, dest : 1.0)
	with pytest.raises(AttributeNotFoundError):
		XMDP(chain_xmdp.state_space, chain_xmdp.action_space, chain_xmdp.initial_state, chain_xmdp.goal,
			chain_xmdp.transition_function, CostFunction({energy_qa : 1.0}), chain_xmdp.qa_functions)


def test_attribute_constraints():
	time_qa = QAFunction('time', lambda src, action, dest : 1.0)
	upper = AttributeConstraint(time_qa, 2.0)
	strict_lower = AttributeConstraint(time_qa, 2.0, BoundType.LOWER_BOUND, strict=True)
	assert not upper.is_soft
	assert upper.is_satisfied(2.0)
	assert not upper.is_satisfied(2.1)
	assert not strict_lower.is_satisfied(2.0)
	assert strict_lower.is_satisfied(2.5)
	assert AttributeConstraint(time_qa, 2.0, penalty_function=LinearPenaltyFunction(1.0)).is_soft


def test_penalty_functions():
	assert LinearPenaltyFunction(3.0).penalty(0.5) == 0.5
	quadratic = QuadraticPenaltyFunction(3.0, num_samples=4)
	assert quadratic.is_nonlinear
	assert quadratic.penalty(0.5) == pytest.approx(0.25)
	with pytest.raises(RuntimeError):
		QuadraticPenaltyFunction(1.0, num_samples=1)
	with pytest.raises(RuntimeError):
		LinearPenaltyFunction(-1.0)


def test_policy_from_matrix(chain_xmdp):
	mdp = flatten_xmdp(chain_xmdp)
	policy = Policy.from_policy_matrix(np.array([[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]]), mdp)
	s0, s1, goal = mdp.states
	assert policy == Policy({s0 : 'a', s1 : 'b'})
	assert hash(policy) == hash(Policy({s1 : 'b', s0 : 'a'}))
	assert goal not in policy
	with pytest.raises(ActionNotFoundError):
		policy.get_action(goal)
