""" The assembled factored MDP (XMDP) together with its quality-attribute
	(QA) functions and its additive objective cost function
"""
from .state_space import StateVarTuple
from ..exceptions import VarNotFoundError, ActionNotFoundError, \
							IncompatibleVarError, AttributeNotFoundError


class QAFunction:
	""" A quality attribute measured on every transition of the MDP.
		:param name : the name of the attribute, e.g. 'travelTime'
		:param value_fn : a callable (src_state, action, dest_state) -> float
	"""
	def __init__(self, name, value_fn, description=''):
		self._name = name
		self._value_fn = value_fn
		self.description = description

	@property
	def name(self):
		return self._name

	def value(self, src_state, action, dest_state):
		return float(self._value_fn(src_state, action, dest_state))

	def __eq__(self, other):
		if not isinstance(other, QAFunction):
			return NotImplemented
		return self._name == other._name

	def __hash__(self):
		return hash(self._name)

	def __repr__(self):
		return 'QAFunction({})'.format(self._name)


class CostFunction:
	""" Additive cost function: sum_k scaling_k * q_k(transition) + offset
	"""
	def __init__(self, scaling_consts, offset=0.0):
		""" :param scaling_consts : a dictionary QAFunction -> scaling constant
			:param offset : a constant cost added on every transition
		"""
		self._scaling_consts = dict(scaling_consts)
		self._offset = offset

	@property
	def qa_functions(self):
		return tuple(self._scaling_consts)

	@property
	def offset(self):
		return self._offset

	def get_scaling_const(self, qa_function):
		try:
			return self._scaling_consts[qa_function]
		except KeyError:
			raise AttributeNotFoundError(qa_function.name) from None

	def value(self, src_state, action, dest_state):
		return self._offset + sum(scale * qa.value(src_state, action, dest_state) \
									for qa, scale in self._scaling_consts.items())

	def __repr__(self):
		return ' + '.join(['{}*{}'.format(s, qa.name) for qa, s in self._scaling_consts.items()] \
							+ ([str(self._offset)] if self._offset != 0 else []))


class XMDP:
	""" A factored MDP: state space, action space, initial state, goal,
		transition function, objective cost function and QA functions.
		The model is checked for consistency when built.
	"""
	def __init__(self, state_space, action_space, initial_state, goal,
					transition_function, cost_function, qa_functions=()):
		"""
		:param state_space : StateSpace of the model
		:param action_space : ActionSpace of the model
		:param initial_state : a StateVarTuple assigning every variable of the state space
		:param goal : a StatePredicate, or None for models without goal (average cost)
		:param transition_function : TransitionFunction of the model
		:param cost_function : the default objective CostFunction
		:param qa_functions : the QAFunction that can be constrained, in a fixed order
		"""
		self._state_space = state_space
		self._action_space = action_space
		self._initial_state = initial_state
		self._goal = goal
		self._transition_function = transition_function
		self._cost_function = cost_function
		self._qa_functions = tuple(qa_functions)
		self._check_model()

	def _check_model(self):
		# The initial state must be a complete assignment
		for var_def in self._state_space:
			if var_def not in self._initial_state:
				raise VarNotFoundError(var_def.name)
		for var_def in self._initial_state:
			if not self._state_space.contains_var_def(var_def):
				raise IncompatibleVarError(var_def)

		# Every PSO must be defined over the model's actions and variables
		action_defs = set(self._action_space.action_definitions)
		for pso in self._transition_function:
			if pso.action_definition not in action_defs:
				raise ActionNotFoundError(pso.action_definition.name)
			for desc in pso.action_descriptions:
				for var_def in tuple(desc.discriminant_class) + tuple(desc.effect_class):
					if not self._state_space.contains_var_def(var_def):
						raise VarNotFoundError(var_def.name)
		for action_def in action_defs:
			self._transition_function.get_pso(action_def)

		for qa in self._cost_function.qa_functions:
			if qa not in self._qa_functions:
				raise AttributeNotFoundError(qa.name)

	@property
	def state_space(self):
		return self._state_space

	@property
	def action_space(self):
		return self._action_space

	@property
	def initial_state(self):
		return self._initial_state

	@property
	def goal(self):
		return self._goal

	@property
	def transition_function(self):
		return self._transition_function

	@property
	def cost_function(self):
		return self._cost_function

	@property
	def qa_functions(self):
		return self._qa_functions

	def get_qa_function(self, name):
		for qa in self._qa_functions:
			if qa.name == name:
				return qa
		raise AttributeNotFoundError(name)

	def make_state(self, **values):
		""" Build a complete state from variable names given as keywords,
			e.g., xmdp.make_state(loc='L1', speed=0.35)
		"""
		return StateVarTuple((self._state_space.get_var_def(name), value) \
								for name, value in values.items())
