""" Primitive value objects of a factored MDP: state variable definitions,
	(partial) assignments of state variables, actions and the spaces that
	contain them.
	All of them are immutable once built and compare structurally.
"""
from collections.abc import Mapping

from ..exceptions import VarNotFoundError, ActionNotFoundError, \
							IncompatibleVarError, IncompatibleActionError


class StateVarDefinition:
	""" A state variable: a name plus the finite domain of its possible values.
		Two definitions are equal iff they have the same name and the same domain.
	"""
	def __init__(self, name, possible_values):
		""" :param name : the name of the variable
			:param possible_values : an iterable over the values of the domain.
				The order of the iterable is kept for enumeration purposes
		"""
		values = tuple(dict.fromkeys(possible_values))
		if len(values) == 0:
			raise IncompatibleVarError(name)
		self._name = name
		self._values = values
		self._values_set = frozenset(values)
		self._hash = hash((name, self._values_set))

	@property
	def name(self):
		return self._name

	@property
	def possible_values(self):
		""" Return the domain of the variable as a tuple
		"""
		return self._values

	def __contains__(self, value):
		return value in self._values_set

	def __len__(self):
		return len(self._values)

	def __eq__(self, other):
		if not isinstance(other, StateVarDefinition):
			return NotImplemented
		return self._name == other._name and self._values_set == other._values_set

	def __hash__(self):
		return self._hash

	def __repr__(self):
		return 'StateVarDefinition({})'.format(self._name)


class StateVarTuple(Mapping):
	""" A (possibly partial) assignment of values to state variables.
		Variables absent from the tuple are "don't care".
		The tuple behaves as a read-only mapping StateVarDefinition -> value.
	"""
	def __init__(self, assignment=None):
		""" :param assignment : a dictionary StateVarDefinition -> value, or
				an iterable of (StateVarDefinition, value) pairs
		"""
		values = dict(assignment) if assignment is not None else dict()
		for var_def, value in values.items():
			if not isinstance(var_def, StateVarDefinition):
				raise IncompatibleVarError(var_def)
			if value not in var_def:
				raise IncompatibleVarError(var_def, value)
		self._values = values
		self._hash = None

	def __getitem__(self, var_def):
		try:
			return self._values[var_def]
		except KeyError:
			raise VarNotFoundError(getattr(var_def, 'name', var_def)) from None

	def __iter__(self):
		return iter(self._values)

	def __len__(self):
		return len(self._values)

	def __contains__(self, var_def):
		return var_def in self._values

	def get(self, var_def, default=None):
		return self._values.get(var_def, default)

	def __eq__(self, other):
		if isinstance(other, StateVarTuple):
			return self._values == other._values
		return NotImplemented

	def __hash__(self):
		if self._hash is None:
			self._hash = hash(frozenset(self._values.items()))
		return self._hash

	def __repr__(self):
		return '({})'.format(','.join('{}={}'.format(v.name, val) for v, val in self._values.items()))

	@property
	def var_defs(self):
		return frozenset(self._values)

	def get_value_by_name(self, var_name):
		""" Return the value of the variable with the given name
		"""
		for var_def, value in self._values.items():
			if var_def.name == var_name:
				return value
		raise VarNotFoundError(var_name)

	def project(self, var_defs):
		""" Restrict this assignment to the given variables.
			Every variable of var_defs must be assigned in this tuple
		"""
		return StateVarTuple((var_def, self[var_def]) for var_def in var_defs)

	def updated(self, other):
		""" Return a new tuple where the values of other override the
			values of this tuple
		"""
		values = dict(self._values)
		values.update(other.items() if isinstance(other, Mapping) else other)
		return StateVarTuple(values)

	def matches(self, other):
		""" True if every variable assigned in this tuple has the same value
			in other
		"""
		return all(var_def in other and other[var_def] == value \
						for var_def, value in self._values.items())


class StateSpace:
	""" The set of state variable definitions of a model
	"""
	def __init__(self, var_defs=()):
		self._var_defs = dict()
		for var_def in var_defs:
			self.add_var_def(var_def)

	def add_var_def(self, var_def):
		other = self._var_defs.get(var_def.name, None)
		if other is not None and other != var_def:
			# Two different domains for the same variable name
			raise IncompatibleVarError(var_def)
		self._var_defs[var_def.name] = var_def

	def get_var_def(self, var_name):
		try:
			return self._var_defs[var_name]
		except KeyError:
			raise VarNotFoundError(var_name) from None

	def contains_var_def(self, var_def):
		return self._var_defs.get(var_def.name, None) == var_def

	def __iter__(self):
		return iter(self._var_defs.values())

	def __len__(self):
		return len(self._var_defs)


class Action:
	""" A grounded action, e.g. moveTo(L2) of the action type moveTo.
		Actions are identified by their names.
	"""
	def __init__(self, name, parameters=()):
		self._name = name
		self._parameters = tuple(parameters)

	@property
	def name(self):
		return self._name

	@property
	def parameters(self):
		return self._parameters

	def __eq__(self, other):
		if not isinstance(other, Action):
			return NotImplemented
		return self._name == other._name

	def __hash__(self):
		return hash(self._name)

	def __repr__(self):
		return self._name


class ActionDefinition:
	""" An action type: a name plus the set of grounded actions of that type
	"""
	def __init__(self, name, actions):
		self._name = name
		self._actions = tuple(dict.fromkeys(actions))

	@property
	def name(self):
		return self._name

	@property
	def actions(self):
		return self._actions

	def __contains__(self, action):
		return action in self._actions

	def __iter__(self):
		return iter(self._actions)

	def __len__(self):
		return len(self._actions)

	def __eq__(self, other):
		if not isinstance(other, ActionDefinition):
			return NotImplemented
		return self._name == other._name and set(self._actions) == set(other._actions)

	def __hash__(self):
		return hash((self._name, frozenset(self._actions)))

	def __repr__(self):
		return 'ActionDefinition({})'.format(self._name)


class ActionSpace:
	""" The set of action types (and their grounded actions) of a model
	"""
	def __init__(self, action_defs=()):
		self._action_defs = list()
		self._actions = dict()
		for action_def in action_defs:
			self.add_action_definition(action_def)

	def add_action_definition(self, action_def):
		for action in action_def:
			if action.name in self._actions:
				# A grounded action belongs to exactly one action type
				raise IncompatibleActionError(action)
		self._action_defs.append(action_def)
		for action in action_def:
			self._actions[action.name] = (action, action_def)

	def get_action(self, action_name):
		try:
			return self._actions[action_name][0]
		except KeyError:
			raise ActionNotFoundError(action_name) from None

	def get_action_definition(self, action):
		try:
			return self._actions[action.name][1]
		except KeyError:
			raise ActionNotFoundError(action) from None

	@property
	def action_definitions(self):
		return tuple(self._action_defs)

	def __contains__(self, action):
		return action.name in self._actions and self._actions[action.name][0] == action

	def __iter__(self):
		return (action for action, _ in self._actions.values())

	def __len__(self):
		return len(self._actions)


class StatePredicate:
	""" A disjunction of partial assignments.
		A state satisfies the predicate if it matches at least one of them.
	"""
	def __init__(self, assignments):
		self._assignments = tuple(assignments)

	@property
	def assignments(self):
		return self._assignments

	def is_satisfied(self, state):
		return any(assignment.matches(state) for assignment in self._assignments)

	def __contains__(self, state):
		return self.is_satisfied(state)

	def __repr__(self):
		return ' | '.join(repr(a) for a in self._assignments)
