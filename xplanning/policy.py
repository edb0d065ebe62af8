from collections.abc import Mapping

import numpy as np

from .exceptions import ActionNotFoundError


class Policy(Mapping):
	""" A deterministic policy: an immutable mapping from states to the name
		of the action to take.
		States are StateVarTuple when the explicit MDP knows them, state
		indices otherwise.
	"""
	def __init__(self, decisions=None):
		self._decisions = dict(decisions) if decisions is not None else dict()
		self._hash = None

	@classmethod
	def from_policy_matrix(cls, policy_matrix, explicit_mdp):
		""" Build a policy from a n x m deterministic policy matrix pi[i, a].
			States without any action with probability 1 are left unassigned
		"""
		policy_matrix = np.asarray(policy_matrix)
		states = explicit_mdp.states
		decisions = dict()
		for i, a in zip(*np.nonzero(policy_matrix >= 1)):
			key = states[i] if states is not None else int(i)
			decisions[key] = explicit_mdp.action_name(a)
		return cls(decisions)

	def get_action(self, state):
		try:
			return self._decisions[state]
		except KeyError:
			raise ActionNotFoundError('for state {}'.format(state)) from None

	def __getitem__(self, state):
		return self._decisions[state]

	def __iter__(self):
		return iter(self._decisions)

	def __len__(self):
		return len(self._decisions)

	def __eq__(self, other):
		if isinstance(other, Policy):
			return self._decisions == other._decisions
		return NotImplemented

	def __hash__(self):
		if self._hash is None:
			self._hash = hash(frozenset(self._decisions.items()))
		return self._hash

	def __repr__(self):
		return 'Policy({})'.format(self._decisions)
