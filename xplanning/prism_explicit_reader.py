import re

from .explicit_mdp import ExplicitMDP, CostType, OBJECTIVE_COST_NAME
from .modeling.state_space import StateVarTuple
from .policy import Policy
from .exceptions import ExplicitModelParsingError, IncompatibleVarError

# Variables and actions introduced by the model translation, not by the user
HELPER_VAR_NAMES = {'action', 'readyToCopy', 'barrier'}
PRISM_VAR_NAMES = {'_da'}
SRC_SUFFIX = '_src'
HELPER_ACTIONS = {'compute', 'next', 'end'}
PRISM_ACTIONS = {'_ec'}

LAB_HEADER_PATTERN = re.compile(r'([0-9]+)="([^"]*)"')
INT_PATTERN = re.compile(r'^-?[0-9]+$')
BOOLEAN_PATTERN = re.compile(r'^(true|false)$')


def read_lines(path):
	""" Return the non-empty lines of a file, stripped
	"""
	with open(path, 'r') as f:
		return [line.strip() for line in f if len(line.strip()) > 0]


def parse_value(value_str):
	""" Parse a value of a PRISM state: boolean, integer, or float
	"""
	if BOOLEAN_PATTERN.match(value_str):
		return value_str == 'true'
	if INT_PATTERN.match(value_str):
		return int(value_str)
	return float(value_str)


def is_helper_variable(var_name):
	return var_name.endswith(SRC_SUFFIX) or var_name in HELPER_VAR_NAMES or var_name in PRISM_VAR_NAMES


def is_helper_action(action_name):
	return action_name in HELPER_ACTIONS or action_name in PRISM_ACTIONS


class PrismExplicitModelReader:
	""" Read an MDP exported by PRISM in its explicit formats:
		.tra (transitions), .lab (labels), .trew/.srew (transition/state rewards),
		.sta (states) and adv.tra (adversary, i.e., a policy)
	"""
	def __init__(self, tra_path, lab_path, trew_paths=(), srew_paths=(), sta_path=None,
					adv_path=None, goal_label='goal', cost_names=None):
		"""
		:param tra_path : path to the .tra file
		:param lab_path : path to the .lab file
		:param trew_paths : paths to the .trew files, one per cost function, the objective first
		:param srew_paths : paths to the .srew files, one per cost function, the objective first
		:param sta_path : path to the .sta file (needed to read states and policies)
		:param adv_path : path to the adversary file (needed to read policies)
		:param goal_label : the label of the goal states in the .lab file
		:param cost_names : names of the cost functions, the objective first
		"""
		if len(trew_paths) > 0 and len(srew_paths) > 0:
			raise ExplicitModelParsingError('Cannot mix transition and state rewards')
		self._tra_path = tra_path
		self._lab_path = lab_path
		self._trew_paths = list(trew_paths)
		self._srew_paths = list(srew_paths)
		self._sta_path = sta_path
		self._adv_path = adv_path
		self._goal_label = goal_label
		num_costs = max(1, len(self._trew_paths) + len(self._srew_paths))
		if cost_names is None:
			cost_names = [OBJECTIVE_COST_NAME] + ['cost_{}'.format(k) for k in range(1, num_costs)]
		if len(cost_names) != num_costs:
			raise ExplicitModelParsingError('{} cost names for {} reward files'.format(len(cost_names), num_costs))
		self._cost_names = list(cost_names)

	def read_explicit_mdp(self, state_space=None):
		""" Build the ExplicitMDP from the files.
			:param state_space : if given (with a .sta file), the states of
				the explicit MDP are decoded into StateVarTuple
		"""
		tra_lines = read_lines(self._tra_path)
		if len(tra_lines) == 0:
			raise ExplicitModelParsingError('Empty transitions file', self._tra_path)
		num_states = self.read_num_states(tra_lines[0])
		choices = self.read_choices(tra_lines[1:])
		action_names = { action for state_choices in choices.values() for action, _ in state_choices}
		cost_type = CostType.STATE_COST if len(self._srew_paths) > 0 else CostType.TRANSITION_COST

		explicit_mdp = ExplicitMDP(num_states, action_names, cost_type, self._cost_names)
		for src, state_choices in choices.items():
			for action, distr in state_choices:
				for dest, prob in distr:
					explicit_mdp.add_transition_probability(src, action, dest, prob)
		explicit_mdp.check_transition_rows()

		init_state, goal_states = self.read_labels(read_lines(self._lab_path))
		explicit_mdp.initial_state = init_state
		for g in goal_states:
			explicit_mdp.add_goal_state(g)

		for k, path in enumerate(self._trew_paths):
			self.read_transition_costs(k, read_lines(path), choices, explicit_mdp)
		for k, path in enumerate(self._srew_paths):
			self.read_state_costs(k, read_lines(path), explicit_mdp)

		if state_space is not None and self._sta_path is not None:
			indices = self.read_states(state_space)
			explicit_mdp.set_states([indices[i] for i in range(num_states)])
		return explicit_mdp

	def read_num_states(self, tra_header):
		""" Header format: "{#states} {#choices} {#transitions}"
		"""
		try:
			return int(tra_header.split()[0])
		except (ValueError, IndexError):
			raise ExplicitModelParsingError('Invalid header "{}"'.format(tra_header), self._tra_path) from None

	def read_choices(self, tra_body):
		""" Read the choices of every state, in the order of the file.
			Line format: "{src} {prob}:{dest} {prob}:{dest} ... {action}"
			:return : a dictionary src -> list of (action, list of (dest, prob))
		"""
		choices = dict()
		for line in tra_body:
			tokens = line.split()
			try:
				src = int(tokens[0])
				distr = list()
				for token in tokens[1:-1]:
					prob_str, dest_str = token.split(':')
					distr.append((int(dest_str), float(prob_str)))
			except (ValueError, IndexError):
				raise ExplicitModelParsingError('Invalid transition "{}"'.format(line), self._tra_path) from None
			if len(tokens) < 3:
				raise ExplicitModelParsingError('Invalid transition "{}"'.format(line), self._tra_path)
			choices.setdefault(src, list()).append((tokens[-1], distr))
		return choices

	def read_labels(self, lab_lines):
		""" Header format: 0="init" 1="deadlock" 2="goal" ...
			Line format: "{state}: {label index} {label index} ..."
			:return : the initial state and the set of goal states
		"""
		if len(lab_lines) == 0:
			raise ExplicitModelParsingError('Empty labels file', self._lab_path)
		labels = { name : index for index, name in LAB_HEADER_PATTERN.findall(lab_lines[0])}
		if 'init' not in labels:
			raise ExplicitModelParsingError('No "init" label in "{}"'.format(lab_lines[0]), self._lab_path)
		init_label = labels['init']
		goal_label = labels.get(self._goal_label, None)
		init_state = None
		goal_states = set()
		for line in lab_lines[1:]:
			state_str, _, label_str = line.partition(':')
			state_labels = set(label_str.split())
			if init_label in state_labels:
				init_state = int(state_str)
			if goal_label is not None and goal_label in state_labels:
				goal_states.add(int(state_str))
		if init_state is None:
			raise ExplicitModelParsingError('No state labeled "init"', self._lab_path)
		return init_state, goal_states

	def read_transition_costs(self, k, trew_lines, choices, explicit_mdp):
		""" Line format: "{src} {choice} {dest} {cost}".
			The choice index is mapped to the action through the order of the
			choices of src in the .tra file. The cost of (src, action) is the
			expected cost over the destinations
		"""
		expected = dict()
		for line in trew_lines[1:]:
			tokens = line.split()
			try:
				src, choice, dest = int(tokens[0]), int(tokens[1]), int(tokens[2])
				cost = float(tokens[3])
				action, distr = choices[src][choice]
			except (ValueError, IndexError, KeyError):
				raise ExplicitModelParsingError('Invalid transition reward "{}"'.format(line)) from None
			prob = dict(distr).get(dest, 0.0)
			expected[(src, action)] = expected.get((src, action), 0.0) + prob * cost
		for (src, action), cost in expected.items():
			explicit_mdp.add_transition_cost(k, src, action, cost)

	def read_state_costs(self, k, srew_lines, explicit_mdp):
		""" Line format: "{state} {cost}"
		"""
		for line in srew_lines[1:]:
			tokens = line.split()
			try:
				explicit_mdp.add_state_cost(k, int(tokens[0]), float(tokens[1]))
			except (ValueError, IndexError):
				raise ExplicitModelParsingError('Invalid state reward "{}"'.format(line)) from None

	def read_states(self, state_space):
		""" Read the states from the .sta file.
			Header format: "({var1},{var2},...)"
			Line format: "{index}:({value1},{value2},...)"
			:return : a dictionary index -> StateVarTuple
		"""
		if self._sta_path is None:
			raise ExplicitModelParsingError('No states file')
		lines = read_lines(self._sta_path)
		var_names = lines[0].strip('()').split(',')
		indices = dict()
		for line in lines[1:]:
			index_str, _, values_str = line.partition(':')
			values = values_str.strip('()').split(',')
			if len(values) != len(var_names):
				raise ExplicitModelParsingError('Invalid state "{}"'.format(line), self._sta_path)
			assignment = dict()
			for var_name, value_str in zip(var_names, values):
				if is_helper_variable(var_name):
					continue
				var_def = state_space.get_var_def(var_name)
				assignment[var_def] = self._decode_value(var_def, value_str)
			indices[int(index_str)] = StateVarTuple(assignment)
		return indices

	@staticmethod
	def _decode_value(var_def, value_str):
		""" Match a raw value against the domain of the variable: either the
			value itself or its string representation
		"""
		value = parse_value(value_str)
		if value in var_def:
			return value
		for candidate in var_def.possible_values:
			if str(candidate) == value_str:
				return candidate
		raise IncompatibleVarError(var_def, value_str)

	def read_policy(self, state_indices=None):
		""" Read a policy from the adversary file.
			Line format: "{src} {dest} {prob} {action}"
			:param state_indices : a dictionary index -> StateVarTuple; the
				policy is over state indices if None
		"""
		if self._adv_path is None:
			raise ExplicitModelParsingError('No adversary file')
		decisions = dict()
		for line in read_lines(self._adv_path)[1:]:
			tokens = line.split()
			if len(tokens) < 4:
				raise ExplicitModelParsingError('Invalid adversary transition "{}"'.format(line), self._adv_path)
			if is_helper_action(tokens[3]):
				continue
			src = int(tokens[0])
			decisions[state_indices[src] if state_indices is not None else src] = tokens[3]
		return Policy(decisions)
