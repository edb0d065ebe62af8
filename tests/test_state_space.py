import pytest

from xplanning.modeling.state_space import StateVarDefinition, StateVarTuple, StateSpace, \
					Action, ActionDefinition, ActionSpace, StatePredicate
from xplanning.exceptions import VarNotFoundError, ActionNotFoundError, \
					IncompatibleVarError, IncompatibleActionError


def test_var_definition_keeps_domain_order():
	speed = StateVarDefinition('speed', [0.35, 0.68, 0.35])
	assert speed.possible_values == (0.35, 0.68)
	assert 0.68 in speed
	assert 1.0 not in speed
	assert speed == StateVarDefinition('speed', [0.68, 0.35])
	assert speed != StateVarDefinition('speed', [0.35])


def test_empty_domain_is_rejected():
	with pytest.raises(IncompatibleVarError):
		StateVarDefinition('loc', [])


def test_state_var_tuple_lookup_and_equality():
	loc = StateVarDefinition('loc', ['L1', 'L2'])
	speed = StateVarDefinition('speed', ['slow', 'fast'])
	state = StateVarTuple({loc : 'L1', speed : 'fast'})

	assert state[loc] == 'L1'
	assert state.get_value_by_name('speed') == 'fast'
	assert state == StateVarTuple([(speed, 'fast'), (loc, 'L1')])
	assert hash(state) == hash(StateVarTuple([(speed, 'fast'), (loc, 'L1')]))
	assert state.project([loc]) == StateVarTuple({loc : 'L1'})
	assert state.updated({loc : 'L2'})[loc] == 'L2'
	# the source tuple is unchanged
	assert state[loc] == 'L1'


def test_state_var_tuple_errors():
	loc = StateVarDefinition('loc', ['L1', 'L2'])
	speed = StateVarDefinition('speed', ['slow', 'fast'])
	state = StateVarTuple({loc : 'L1'})

	with pytest.raises(VarNotFoundError):
		state[speed]
	with pytest.raises(VarNotFoundError):
		state.get_value_by_name('speed')
	with pytest.raises(IncompatibleVarError):
		StateVarTuple({loc : 'L3'})


def test_partial_tuple_matches_complete_state():
	loc = StateVarDefinition('loc', ['L1', 'L2'])
	speed = StateVarDefinition('speed', ['slow', 'fast'])
	state = StateVarTuple({loc : 'L2', speed : 'slow'})

	assert StateVarTuple({loc : 'L2'}).matches(state)
	assert not StateVarTuple({loc : 'L1'}).matches(state)
	assert StateVarTuple().matches(state)

	goal = StatePredicate([StateVarTuple({loc : 'L1'}), StateVarTuple({speed : 'slow'})])
	assert goal.is_satisfied(state)
	assert not goal.is_satisfied(StateVarTuple({loc : 'L2', speed : 'fast'}))


def test_state_space_rejects_conflicting_domains():
	space = StateSpace([StateVarDefinition('loc', ['L1', 'L2'])])
	assert space.get_var_def('loc') == StateVarDefinition('loc', ['L1', 'L2'])
	with pytest.raises(IncompatibleVarError):
		space.add_var_def(StateVarDefinition('loc', ['L1']))
	with pytest.raises(VarNotFoundError):
		space.get_var_def('speed')


def test_action_space_lookups():
	move_l1, move_l2 = Action('moveTo(L1)', ['L1']), Action('moveTo(L2)', ['L2'])
	move_def = ActionDefinition('moveTo', [move_l1, move_l2])
	space = ActionSpace([move_def])

	assert space.get_action('moveTo(L2)') == move_l2
	assert space.get_action_definition(move_l1) == move_def
	assert len(space) == 2
	with pytest.raises(ActionNotFoundError):
		space.get_action('fly')
	with pytest.raises(IncompatibleActionError):
		space.add_action_definition(ActionDefinition('goTo', [Action('moveTo(L1)')]))
