import numpy as np
from enum import Enum
from collections import deque
import time

from tqdm.auto import tqdm

from .modeling.state_space import StateVarTuple
from .exceptions import ActionNotFoundError, AttributeNotFoundError, \
							MalformedExplicitMDPError, ProbabilityNotNormalizedError

# Tolerance when checking that every transition row is a distribution
ROW_SUM_TOL = 1e-6

# Name of the cost row holding the objective
OBJECTIVE_COST_NAME = 'objective'


class CostType(Enum):
	TRANSITION_COST = 'transition'
	STATE_COST = 'state'


def sort_action_names(action_names):
	""" Sort the action names lexicographically, ignoring case, so that two
		explicit MDPs with the same structure index their actions identically
	"""
	return sorted(set(action_names), key=lambda name : (name.lower(), name))


class ExplicitMDP:
	""" Dense representation of an MDP: states are indexed 0..n-1, actions
		0..m-1 in case-insensitive lexicographic order of their names.
		P[i, a, j] is the probability to reach j by taking a in i.
		The cost tables hold one row per cost function, the objective being
		at index 0 and the QA functions at the following indices:
		transition costs c[k, i, a] or state costs c[k, i].
	"""
	def __init__(self, num_states, action_names, cost_type=CostType.TRANSITION_COST,
					cost_names=(OBJECTIVE_COST_NAME,)):
		"""
		:param num_states : the number of states n
		:param action_names : the names of the m actions, in any order
		:param cost_type : CostType.TRANSITION_COST or CostType.STATE_COST
		:param cost_names : the names of the cost rows, the objective first
		"""
		if num_states <= 0:
			raise MalformedExplicitMDPError('An explicit MDP needs at least one state')
		if len(cost_names) == 0:
			raise MalformedExplicitMDPError('An explicit MDP needs at least the objective cost')
		self._n = num_states
		self._actions = sort_action_names(action_names)
		self._action_index = { name : a for a, name in enumerate(self._actions)}
		self._cost_type = cost_type
		self._cost_names = list(cost_names)
		m = len(self._actions)
		self._trans_probs = np.zeros((self._n, m, self._n))
		self._applicable = np.zeros((self._n, m), dtype=bool)
		if cost_type == CostType.TRANSITION_COST:
			self._costs = np.zeros((len(self._cost_names), self._n, m))
		else:
			self._costs = np.zeros((len(self._cost_names), self._n))
		self._initial_state = 0
		self._goal_states = set()
		self._states = None

	@property
	def num_states(self):
		return self._n

	@property
	def num_actions(self):
		return len(self._actions)

	@property
	def actions(self):
		""" The action names sorted by index
		"""
		return tuple(self._actions)

	@property
	def cost_type(self):
		return self._cost_type

	@property
	def cost_names(self):
		return tuple(self._cost_names)

	@property
	def num_cost_functions(self):
		return len(self._cost_names)

	@property
	def trans_probs(self):
		""" Read-only view of the transition tensor P[i, a, j]
		"""
		view = self._trans_probs.view()
		view.flags.writeable = False
		return view

	@property
	def applicable_mask(self):
		""" Read-only n x m boolean matrix: True iff action a is applicable in i
		"""
		view = self._applicable.view()
		view.flags.writeable = False
		return view

	@property
	def initial_state(self):
		return self._initial_state

	@initial_state.setter
	def initial_state(self, i):
		self._check_state(i)
		self._initial_state = i

	@property
	def goal_states(self):
		return frozenset(self._goal_states)

	def add_goal_state(self, i):
		self._check_state(i)
		self._goal_states.add(i)

	@property
	def states(self):
		""" The list index -> StateVarTuple if it is known, None otherwise
		"""
		return self._states

	def set_states(self, states):
		if len(states) != self._n:
			raise MalformedExplicitMDPError('{} states given for {} indices'.format(len(states), self._n))
		self._states = list(states)
		self._state_index = { s : i for i, s in enumerate(self._states)}

	def state_index(self, state):
		if self._states is None or state not in self._state_index:
			raise MalformedExplicitMDPError('State {} is not indexed'.format(state))
		return self._state_index[state]

	def action_index(self, action_name):
		try:
			return self._action_index[action_name]
		except KeyError:
			raise ActionNotFoundError(action_name) from None

	def action_name(self, a):
		return self._actions[a]

	def cost_index(self, name):
		""" Return the row of the cost tables holding the cost named name
		"""
		try:
			return self._cost_names.index(name)
		except ValueError:
			raise AttributeNotFoundError(name) from None

	def _check_state(self, i):
		if not (0 <= i < self._n):
			raise MalformedExplicitMDPError('State index {} out of range [0, {})'.format(i, self._n))

	def _check_cost(self, k):
		if not (0 <= k < len(self._cost_names)):
			raise MalformedExplicitMDPError('Cost index {} out of range [0, {})'.format(k, len(self._cost_names)))

	def add_transition_probability(self, src, action_name, dest, prob):
		""" Set Pr(dest | src, action) = prob.
			An action becomes applicable in src once it has a transition from src
		"""
		self._check_state(src)
		self._check_state(dest)
		if prob < 0 or prob > 1 + ROW_SUM_TOL:
			raise ProbabilityNotNormalizedError(prob, 'for ({}, {}, {})'.format(src, action_name, dest))
		a = self.action_index(action_name)
		self._trans_probs[src, a, dest] = prob
		self._applicable[src, a] = True

	def add_transition_cost(self, k, src, action_name, cost):
		if self._cost_type != CostType.TRANSITION_COST:
			raise MalformedExplicitMDPError('This explicit MDP has state costs')
		self._check_cost(k)
		self._check_state(src)
		self._costs[k, src, self.action_index(action_name)] = cost

	def add_state_cost(self, k, i, cost):
		if self._cost_type != CostType.STATE_COST:
			raise MalformedExplicitMDPError('This explicit MDP has transition costs')
		self._check_cost(k)
		self._check_state(i)
		self._costs[k, i] = cost

	def transition_probability(self, src, a, dest):
		return self._trans_probs[src, a, dest]

	def is_action_applicable(self, i, a):
		return bool(self._applicable[i, a])

	def applicable_actions(self, i):
		return np.flatnonzero(self._applicable[i])

	def step_cost(self, k, i, a):
		""" The k-th cost of taking a in i: c^k_ia for transition costs and
			c^k_i for state costs
		"""
		if self._cost_type == CostType.TRANSITION_COST:
			return self._costs[k, i, a]
		return self._costs[k, i]

	def step_cost_matrix(self, k):
		""" The n x m matrix of the k-th step costs, zero where an action is
			not applicable
		"""
		if self._cost_type == CostType.TRANSITION_COST:
			costs = self._costs[k]
		else:
			costs = np.repeat(self._costs[k][:, np.newaxis], self.num_actions, axis=1)
		return np.where(self._applicable, costs, 0.0)

	def occupancy_cost(self, k, x):
		""" Expected k-th cost of an occupation measure: sum_i,a x_ia * c^k(i,a)
		"""
		x = np.asarray(x)
		if x.shape != self._applicable.shape:
			raise MalformedExplicitMDPError('Occupation measure of shape {} for an MDP of shape {}'.format(
						x.shape, self._applicable.shape))
		return float(np.sum(x * self.step_cost_matrix(k)))

	def check_transition_rows(self, tol=ROW_SUM_TOL):
		""" Check that every applicable (state, action) row is a distribution
		"""
		sums = self._trans_probs.sum(axis=2)
		bad = np.logical_and(self._applicable, np.abs(sums - 1.0) > tol)
		if np.any(bad):
			i, a = np.argwhere(bad)[0]
			raise ProbabilityNotNormalizedError(sums[i, a], 'for state {} and action {}'.format(i, self._actions[a]))

	def __eq__(self, other):
		if not isinstance(other, ExplicitMDP):
			return NotImplemented
		return self._n == other._n and self._actions == other._actions \
				and self._cost_type == other._cost_type \
				and np.array_equal(self._trans_probs, other._trans_probs) \
				and np.array_equal(self._costs, other._costs) \
				and self._initial_state == other._initial_state \
				and self._goal_states == other._goal_states

	__hash__ = None


def flatten_xmdp(xmdp, cost_function=None, expand_goals=False, verbose=False):
	""" Enumerate the states reachable from the initial state of a factored MDP
		and build the corresponding explicit MDP.
		The probabilistic effects of the independent modules (chains of
		effect classes) of an action are combined by product; variables not
		changed by any module keep their values.
		Transition costs are the expected values of the objective cost function
		(row 0) and of the QA functions of the model (rows 1..K).
		:param xmdp : the factored MDP
		:param cost_function : objective CostFunction, xmdp.cost_function if None
		:param expand_goals : if False, goal states are absorbing (not expanded)
		:param verbose : Enable some logging
		:return : an ExplicitMDP whose states are known (explicit_mdp.states)
	"""
	curr_time = time.time()
	if cost_function is None:
		cost_function = xmdp.cost_function
	cost_fns = [cost_function] + list(xmdp.qa_functions)
	cost_names = [OBJECTIVE_COST_NAME] + [qa.name for qa in xmdp.qa_functions]

	tf = xmdp.transition_function
	chains = tf.effect_class_chains()
	actions = sorted(xmdp.action_space, key=lambda act : (act.name.lower(), act.name))

	# One (possibly merged) action description per module touched by each PSO
	modules = dict()
	for pso in tf:
		modules[pso] = [desc for desc in (chain.action_description(pso) for chain in chains) \
							if desc is not None]
	pso_of = { action : tf.get_pso_of_action(action) for action in actions}

	states = [xmdp.initial_state]
	index = { xmdp.initial_state : 0}
	goals = set()
	transitions = list() # (src, action name, dest, prob)
	costs = dict() # (src, action name) -> list of expected costs
	queue = deque([0])
	pbar = tqdm(desc='Flattening', unit='states', disable=not verbose)
	while len(queue) > 0:
		i = queue.popleft()
		state = states[i]
		pbar.update(1)
		if xmdp.goal is not None and xmdp.goal.is_satisfied(state):
			goals.add(i)
			if not expand_goals:
				continue
		for action in actions:
			pso = pso_of[action]
			if not pso.is_action_applicable(action, state):
				continue
			# Joint distribution over the changed variables
			distr = { StateVarTuple() : 1.0}
			for desc in modules[pso]:
				prob_effect = desc.get_probabilistic_effect_at(state, action)
				next_distr = dict()
				for change, p in distr.items():
					for effect, q in prob_effect.items():
						if q <= 0:
							continue
						joint = change.updated(effect.values)
						next_distr[joint] = next_distr.get(joint, 0.0) + p * q
				distr = next_distr
			exp_costs = np.zeros(len(cost_fns))
			for change, p in distr.items():
				dest = state.updated(change)
				if dest not in index:
					index[dest] = len(states)
					states.append(dest)
					queue.append(index[dest])
				transitions.append((i, action.name, index[dest], p))
				exp_costs += p * np.array([fn.value(state, action, dest) for fn in cost_fns])
			costs[(i, action.name)] = exp_costs
	pbar.close()

	explicit_mdp = ExplicitMDP(len(states), [act.name for act in actions],
						CostType.TRANSITION_COST, cost_names)
	explicit_mdp.set_states(states)
	explicit_mdp.initial_state = 0
	for g in sorted(goals):
		explicit_mdp.add_goal_state(g)
	for src, action_name, dest, prob in transitions:
		explicit_mdp.add_transition_probability(src, action_name, dest, prob)
	for (src, action_name), exp_costs in costs.items():
		for k, c in enumerate(exp_costs):
			explicit_mdp.add_transition_cost(k, src, action_name, c)
	explicit_mdp.check_transition_rows()

	if verbose:
		print('[Number of states : {}, number of actions : {}]'.format(explicit_mdp.num_states, explicit_mdp.num_actions))
		print('[Number of modules : {}]'.format(len(chains)))
		print('[Time used to flatten the model : {}]'.format(time.time() - curr_time))
	return explicit_mdp
