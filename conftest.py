import sys
from pathlib import Path

import pytest

# Make the xplanning package importable without installing it
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
	sys.path.insert(0, str(PROJECT_ROOT))

from xplanning.modeling.state_space import StateVarDefinition, StateVarTuple, StateSpace, \
					Action, ActionDefinition, ActionSpace, StatePredicate
from xplanning.modeling.effects import DiscriminantClass, EffectClass, Discriminant, \
					Effect, ProbabilisticEffect
from xplanning.modeling.precondition import PreconditionBuilder
from xplanning.modeling.action_description import enumerate_discriminants, \
					TabularActionDescriptionBuilder, FormulaActionDescription
from xplanning.modeling.factored_pso import FactoredPSOBuilder, TransitionFunction
from xplanning.modeling.xmdp import QAFunction, CostFunction, XMDP


def deterministic_effect(effect_class, values):
	""" The probabilistic effect that sets the variables of effect_class to
		values with probability 1
	"""
	return ProbabilisticEffect(effect_class, {Effect(effect_class, values) : 1.0})


@pytest.fixture
def chain_xmdp():
	""" Three states s0 -a-> s1 -b-> goal, each step costing 1 unit of time
	"""
	loc = StateVarDefinition('loc', ['s0', 's1', 'goal'])
	a, b = Action('a'), Action('b')
	a_def, b_def = ActionDefinition('a', [a]), ActionDefinition('b', [b])
	loc_ec = EffectClass([loc])
	empty_dc = DiscriminantClass()

	psos = list()
	for action_def, action, src, dest in [(a_def, a, 's0', 's1'), (b_def, b, 's1', 'goal')]:
		precondition = PreconditionBuilder(action_def).add(action, loc, src).build()
		desc = FormulaActionDescription(action_def, precondition, empty_dc, loc_ec,
					lambda discr, act, dest=dest : deterministic_effect(loc_ec, {loc : dest}))
		psos.append(FactoredPSOBuilder(action_def, precondition).add_action_description(desc).build())

	time_qa = QAFunction('time', lambda src, action, dest : 1.0)
	return XMDP(StateSpace([loc]), ActionSpace([a_def, b_def]), StateVarTuple({loc : 's0'}),
				StatePredicate([StateVarTuple({loc : 'goal'})]), TransitionFunction(psos),
				CostFunction({time_qa : 1.0}), [time_qa])


@pytest.fixture
def robot_xmdp():
	""" A robot moving from L1 to L3 through L2, at a slow or fast speed.
		Moving fast takes 1 unit of time but bumps into obstacles with
		probability 0.2; moving slow takes 2 units of time and never bumps.
		Changing speed takes 0.5, and recovering from a bump sends the robot
		back to L1 in 3 units of time
	"""
	loc = StateVarDefinition('loc', ['L1', 'L2', 'L3'])
	speed = StateVarDefinition('speed', ['slow', 'fast'])
	bumped = StateVarDefinition('bumped', [False, True])

	move_l2, move_l3 = Action('moveTo(L2)', ['L2']), Action('moveTo(L3)', ['L3'])
	move_def = ActionDefinition('moveTo', [move_l2, move_l3])
	set_slow, set_fast = Action('setSpeed(slow)', ['slow']), Action('setSpeed(fast)', ['fast'])
	speed_def = ActionDefinition('setSpeed', [set_slow, set_fast])
	recover = Action('recover')
	recover_def = ActionDefinition('recover', [recover])

	loc_ec, bumped_ec, speed_ec = EffectClass([loc]), EffectClass([bumped]), EffectClass([speed])
	recover_ec = EffectClass([loc, bumped])

	# moveTo
	move_pre = PreconditionBuilder(move_def).add(move_l2, loc, 'L1', 'L3').add(move_l3, loc, 'L2').build()
	move_loc = FormulaActionDescription(move_def, move_pre, DiscriminantClass([loc]), loc_ec,
					lambda discr, action : deterministic_effect(loc_ec, {loc : action.parameters[0]}))
	bump_dc = DiscriminantClass([speed])
	builder = TabularActionDescriptionBuilder(move_def, move_pre, bump_dc, bumped_ec)
	for action in move_def:
		for discr in enumerate_discriminants(bump_dc, move_pre, action):
			if discr[speed] == 'fast':
				prob_effect = ProbabilisticEffect(bumped_ec, {Effect(bumped_ec, {bumped : True}) : 0.2,
													Effect(bumped_ec, {bumped : False}) : 0.8})
			else:
				prob_effect = deterministic_effect(bumped_ec, {bumped : False})
			builder.put(prob_effect, discr, action)
	move_pso = FactoredPSOBuilder(move_def, move_pre).add_action_description(move_loc) \
					.add_action_description(builder.build()).build()

	# setSpeed
	speed_pre = PreconditionBuilder(speed_def).build()
	speed_desc = FormulaActionDescription(speed_def, speed_pre, DiscriminantClass(), speed_ec,
					lambda discr, action : deterministic_effect(speed_ec, {speed : action.parameters[0]}))
	speed_pso = FactoredPSOBuilder(speed_def, speed_pre).add_action_description(speed_desc).build()

	# recover
	recover_pre = PreconditionBuilder(recover_def).add(recover, bumped, True).build()
	empty_discr = Discriminant(DiscriminantClass(), StateVarTuple())
	recover_desc = TabularActionDescriptionBuilder(recover_def, recover_pre, DiscriminantClass(), recover_ec) \
					.put(deterministic_effect(recover_ec, {loc : 'L1', bumped : False}), empty_discr, recover) \
					.build()
	recover_pso = FactoredPSOBuilder(recover_def, recover_pre).add_action_description(recover_desc).build()

	def travel_time(src, action, dest):
		if action in move_def:
			return 1.0 if src[speed] == 'fast' else 2.0
		if action in speed_def:
			return 0.5
		return 3.0

	def collision(src, action, dest):
		return 1.0 if action in move_def and dest[bumped] else 0.0

	time_qa = QAFunction('time', travel_time)
	collision_qa = QAFunction('collision', collision)
	return XMDP(StateSpace([loc, speed, bumped]), ActionSpace([move_def, speed_def, recover_def]),
				StateVarTuple({loc : 'L1', speed : 'fast', bumped : False}),
				StatePredicate([StateVarTuple({loc : 'L3'})]),
				TransitionFunction([move_pso, speed_pso, recover_pso]),
				CostFunction({time_qa : 1.0}), [time_qa, collision_qa])


@pytest.fixture
def cycle_xmdp():
	""" Two modes A and B without goal: 'keep' stays in the current mode,
		'flip' switches mode. Every step costs 1 in A and 3 in B
	"""
	mode = StateVarDefinition('mode', ['A', 'B'])
	keep, flip = Action('keep'), Action('flip')
	keep_def, flip_def = ActionDefinition('keep', [keep]), ActionDefinition('flip', [flip])
	mode_ec, mode_dc = EffectClass([mode]), DiscriminantClass([mode])
	other = {'A' : 'B', 'B' : 'A'}

	psos = list()
	for action_def, next_mode in [(keep_def, lambda m : m), (flip_def, lambda m : other[m])]:
		precondition = PreconditionBuilder(action_def).build()
		desc = FormulaActionDescription(action_def, precondition, mode_dc, mode_ec,
					lambda discr, act, next_mode=next_mode : deterministic_effect(mode_ec,
										{mode : next_mode(discr[mode])}))
		psos.append(FactoredPSOBuilder(action_def, precondition).add_action_description(desc).build())

	mode_cost = QAFunction('modeCost', lambda src, action, dest : 1.0 if src[mode] == 'A' else 3.0)
	return XMDP(StateSpace([mode]), ActionSpace([keep_def, flip_def]), StateVarTuple({mode : 'B'}),
				None, TransitionFunction(psos), CostFunction({mode_cost : 1.0}), [mode_cost])
