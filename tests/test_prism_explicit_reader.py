import numpy as np
import pytest

from xplanning.prism_explicit_reader import PrismExplicitModelReader, parse_value, \
					is_helper_variable, is_helper_action
from xplanning.explicit_mdp import CostType
from xplanning.mdp_solver import SSPSolver
from xplanning.modeling.state_space import StateVarDefinition, StateVarTuple, StateSpace
from xplanning.policy import Policy
from xplanning.exceptions import ExplicitModelParsingError


def _write(path, lines):
	path.write_text('\n'.join(lines) + '\n')
	return str(path)


@pytest.fixture
def prism_files(tmp_path):
	""" Explicit export of a model where 'go' from 0 reaches 1 or 2 with
		probability 0.5, and 'jump' reaches the goal 2 directly
	"""
	return {
		'tra' : _write(tmp_path / 'model.tra', ['3 3 4',
											'0 0.5:1 0.5:2 go',
											'0 1:2 jump',
											'1 1:2 go']),
		'lab' : _write(tmp_path / 'model.lab', ['0="init" 1="deadlock" 2="goal"',
											'0: 0',
											'2: 2']),
		'trew_obj' : _write(tmp_path / 'objective.trew', ['3 4',
											'0 0 1 2',
											'0 0 2 4',
											'0 1 2 5',
											'1 0 2 1']),
		'trew_time' : _write(tmp_path / 'time.trew', ['3 3',
											'0 0 1 1',
											'0 1 2 1',
											'1 0 2 1']),
		'srew' : _write(tmp_path / 'model.srew', ['3 2',
											'0 1.5',
											'1 2']),
		'sta' : _write(tmp_path / 'model.sta', ['(loc,readyToCopy,loc_src,lit)',
											'0:(0,false,0,true)',
											'1:(1,true,0,false)',
											'2:(2,false,1,true)']),
		'adv' : _write(tmp_path / 'model_adv.tra', ['3 3',
											'0 1 0.5 go',
											'0 2 0.5 go',
											'1 2 1 go',
											'2 2 1 end']),
	}


@pytest.fixture
def state_space():
	return StateSpace([StateVarDefinition('loc', [0, 1, 2]), StateVarDefinition('lit', [False, True])])


def test_parse_values():
	assert parse_value('true') is True
	assert parse_value('-3') == -3
	assert parse_value('0.35') == pytest.approx(0.35)
	assert is_helper_variable('loc_src')
	assert is_helper_variable('readyToCopy')
	assert not is_helper_variable('loc')
	assert is_helper_action('compute')
	assert not is_helper_action('go')


def test_read_transitions_and_labels(prism_files):
	reader = PrismExplicitModelReader(prism_files['tra'], prism_files['lab'],
					trew_paths=[prism_files['trew_obj'], prism_files['trew_time']],
					cost_names=['objective', 'time'])
	mdp = reader.read_explicit_mdp()
	go, jump = mdp.action_index('go'), mdp.action_index('jump')

	assert mdp.num_states == 3
	assert mdp.actions == ('go', 'jump')
	assert mdp.initial_state == 0
	assert mdp.goal_states == frozenset([2])
	assert mdp.transition_probability(0, go, 1) == 0.5
	assert mdp.transition_probability(0, jump, 2) == 1.0
	assert not mdp.is_action_applicable(1, jump)
	# expected transition costs over the destinations
	assert mdp.step_cost(0, 0, go) == pytest.approx(0.5 * 2 + 0.5 * 4)
	assert mdp.step_cost(0, 0, jump) == pytest.approx(5.0)
	assert mdp.step_cost(mdp.cost_index('time'), 0, go) == pytest.approx(0.5)


def test_solve_read_model(prism_files):
	reader = PrismExplicitModelReader(prism_files['tra'], prism_files['lab'],
					trew_paths=[prism_files['trew_obj']])
	mdp = reader.read_explicit_mdp()
	result = SSPSolver(mdp).solve()
	# go: 3 + 0.5 * 1, jump: 5
	assert result.objective_value == pytest.approx(3.5)
	assert result.policy[0, mdp.action_index('go')] == 1.0


def test_read_state_costs(prism_files):
	reader = PrismExplicitModelReader(prism_files['tra'], prism_files['lab'], srew_paths=[prism_files['srew']])
	mdp = reader.read_explicit_mdp()
	assert mdp.cost_type == CostType.STATE_COST
	assert np.array_equal(mdp.step_cost_matrix(0), [[1.5, 1.5], [2.0, 0.0], [0.0, 0.0]])


def test_read_states_and_policy(prism_files, state_space):
	reader = PrismExplicitModelReader(prism_files['tra'], prism_files['lab'],
					sta_path=prism_files['sta'], adv_path=prism_files['adv'])
	loc, lit = state_space.get_var_def('loc'), state_space.get_var_def('lit')
	states = reader.read_states(state_space)
	# helper variables are dropped
	assert states[1] == StateVarTuple({loc : 1, lit : False})

	mdp = reader.read_explicit_mdp(state_space)
	assert mdp.states[2] == StateVarTuple({loc : 2, lit : True})

	# helper actions are skipped
	policy = reader.read_policy(states)
	assert policy == Policy({states[0] : 'go', states[1] : 'go'})
	assert reader.read_policy() == Policy({0 : 'go', 1 : 'go'})


def test_malformed_files(tmp_path, prism_files):
	bad_tra = _write(tmp_path / 'bad.tra', ['3 1 1', '0 0.5:x go'])
	with pytest.raises(ExplicitModelParsingError):
		PrismExplicitModelReader(bad_tra, prism_files['lab']).read_explicit_mdp()
	no_init = _write(tmp_path / 'bad.lab', ['1="deadlock"', '0: 1'])
	with pytest.raises(ExplicitModelParsingError):
		PrismExplicitModelReader(prism_files['tra'], no_init).read_explicit_mdp()
	with pytest.raises(ExplicitModelParsingError):
		PrismExplicitModelReader(prism_files['tra'], prism_files['lab'],
					trew_paths=[prism_files['trew_obj']], srew_paths=[prism_files['srew']])
	with pytest.raises(ExplicitModelParsingError):
		PrismExplicitModelReader(prism_files['tra'], prism_files['lab']).read_policy()
