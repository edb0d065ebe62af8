""" Per-action applicability of state variable values.
	If a variable is absent from the precondition of an action, there is no
	restriction on its values for that action (its full domain applies).
"""
from ..exceptions import ActionNotFoundError, IncompatibleActionError, IncompatibleVarError


class Precondition:
	""" Immutable precondition of every action of one action type.
		Use PreconditionBuilder to create it
	"""
	def __init__(self, action_def, action_preconds):
		""" :param action_def : the ActionDefinition the precondition is for
			:param action_preconds : action_preconds[action][var_def] is the
				frozenset of applicable values of var_def for action
		"""
		self._action_def = action_def
		self._preconds = { action : dict(var_values) for action, var_values in action_preconds.items()}

	@property
	def action_definition(self):
		return self._action_def

	def _check(self, action):
		if action not in self._action_def:
			raise ActionNotFoundError(action)

	def get_applicable_values(self, action, var_def):
		""" Return the tuple of applicable values of var_def for action,
			in the order of the variable domain
		"""
		self._check(action)
		allowed = self._preconds.get(action, {}).get(var_def, None)
		if allowed is None:
			return var_def.possible_values
		return tuple(v for v in var_def.possible_values if v in allowed)

	def restricted_vars(self, action):
		""" Return the variables whose values are restricted for action
		"""
		self._check(action)
		return tuple(self._preconds.get(action, {}))

	def is_action_applicable(self, action, state):
		""" Check if the action is applicable in the given (partial) state.
			Variables not assigned in state are not restricting.
		"""
		self._check(action)
		for var_def, allowed in self._preconds.get(action, {}).items():
			if var_def in state and state[var_def] not in allowed:
				return False
		return True

	def __eq__(self, other):
		if not isinstance(other, Precondition):
			return NotImplemented
		return self._action_def == other._action_def and self._preconds == other._preconds

	def __hash__(self):
		return hash((self._action_def, frozenset((a, frozenset(v.items())) \
							for a, v in self._preconds.items())))


class PreconditionBuilder:
	""" Mutable builder of a Precondition
	"""
	def __init__(self, action_def):
		self._action_def = action_def
		self._preconds = dict()

	def add(self, action, var_def, *values):
		""" Add applicable values of var_def for action. Calling it several
			times for the same (action, variable) accumulates the values
		"""
		if action not in self._action_def:
			raise IncompatibleActionError(action, self._action_def.name)
		for value in values:
			if value not in var_def:
				raise IncompatibleVarError(var_def, value)
		var_values = self._preconds.setdefault(action, dict())
		var_values[var_def] = var_values.get(var_def, frozenset()) | frozenset(values)
		return self

	def build(self):
		return Precondition(self._action_def, self._preconds)
