""" Factoring primitives of the transition structure.
	A DiscriminantClass is the set of variables whose values select the case
	(Discriminant) that governs an action's effect on an EffectClass, i.e.,
	the set of variables an action type changes together. A ProbabilisticEffect
	is a distribution over the joint Effects on one EffectClass.
"""
import numpy as np

from .state_space import StateVarTuple
from ..exceptions import IncompatibleVarError, IncompatibleEffectError, \
							EffectNotFoundError, ProbabilityNotNormalizedError

# Tolerance when checking that a distribution sums to one
PROB_SUM_TOL = 1e-6


class _VarClass:
	""" An immutable set of state variable definitions
	"""
	def __init__(self, var_defs=()):
		self._var_defs = tuple(dict.fromkeys(var_defs))
		self._var_set = frozenset(self._var_defs)

	@property
	def var_defs(self):
		return self._var_defs

	def __contains__(self, var_def):
		return var_def in self._var_set

	def __iter__(self):
		return iter(self._var_defs)

	def __len__(self):
		return len(self._var_defs)

	def overlaps(self, other):
		return not self._var_set.isdisjoint(other._var_set)

	def union(self, other):
		return type(self)(self._var_defs + other._var_defs)

	def __eq__(self, other):
		if type(other) is not type(self):
			return NotImplemented
		return self._var_set == other._var_set

	def __hash__(self):
		return hash((type(self).__name__, self._var_set))

	def __repr__(self):
		return '{}({})'.format(type(self).__name__, ','.join(v.name for v in self._var_defs))


class DiscriminantClass(_VarClass):
	pass


class EffectClass(_VarClass):
	pass


class _VarAssignment:
	""" An assignment of every variable of a given class
	"""
	_class_type = _VarClass

	def __init__(self, var_class, assignment=None):
		""" :param var_class : the class of variables being assigned
			:param assignment : a StateVarTuple (or a dictionary) assigning
				exactly the variables of var_class
		"""
		values = assignment if isinstance(assignment, StateVarTuple) \
						else StateVarTuple(assignment)
		for var_def in values:
			if var_def not in var_class:
				raise IncompatibleVarError(var_def)
		for var_def in var_class:
			if var_def not in values:
				raise IncompatibleVarError(var_def)
		self._var_class = var_class
		self._values = values

	@property
	def values(self):
		""" Return the assignment as a StateVarTuple
		"""
		return self._values

	def __getitem__(self, var_def):
		return self._values[var_def]

	def matches(self, state):
		return self._values.matches(state)

	def __eq__(self, other):
		if type(other) is not type(self):
			return NotImplemented
		return self._var_class == other._var_class and self._values == other._values

	def __hash__(self):
		return hash((self._var_class, self._values))

	def __repr__(self):
		return '{}{}'.format(type(self).__name__, self._values)


class Discriminant(_VarAssignment):
	""" A case of a discriminant class: one value for each of its variables
	"""
	@property
	def discriminant_class(self):
		return self._var_class

	def merged(self, other):
		""" Join two discriminants of (possibly overlapping) classes
		"""
		for var_def in other.values:
			if var_def in self._values and self._values[var_def] != other.values[var_def]:
				raise IncompatibleVarError(var_def, other.values[var_def])
		return Discriminant(self._var_class.union(other.discriminant_class),
							self._values.updated(other.values))


class Effect(_VarAssignment):
	""" A joint change of every variable of an effect class
	"""
	@property
	def effect_class(self):
		return self._var_class

	def merged(self, other):
		""" Join two effects on disjoint effect classes
		"""
		if self._var_class.overlaps(other.effect_class):
			raise IncompatibleEffectError(other)
		return Effect(self._var_class.union(other.effect_class),
						self._values.updated(other.values))


class ProbabilisticEffect:
	""" A finite distribution over the effects on a single effect class.
		Probabilities must be non-negative and sum to one; this is checked
		when the distribution is built, never silently corrected.
	"""
	def __init__(self, effect_class, distribution):
		""" :param effect_class : the EffectClass of all the effects
			:param distribution : a dictionary Effect -> probability, or an
				iterable of (Effect, probability) pairs. Entries for the same
				effect are summed up
		"""
		self._effect_class = effect_class
		self._distr = dict()
		pairs = distribution.items() if isinstance(distribution, dict) else distribution
		for effect, prob in pairs:
			if effect.effect_class != effect_class:
				raise IncompatibleEffectError(effect)
			if prob < 0:
				raise ProbabilityNotNormalizedError(prob, 'negative probability for {}'.format(effect))
			self._distr[effect] = self._distr.get(effect, 0.0) + prob
		total = sum(self._distr.values())
		if np.abs(total - 1.0) > PROB_SUM_TOL:
			raise ProbabilityNotNormalizedError(total, 'for {}'.format(effect_class))

	@property
	def effect_class(self):
		return self._effect_class

	def probability(self, effect):
		try:
			return self._distr[effect]
		except KeyError:
			raise EffectNotFoundError(effect) from None

	def items(self):
		return self._distr.items()

	def __iter__(self):
		return iter(self._distr)

	def __len__(self):
		return len(self._distr)

	def __eq__(self, other):
		if not isinstance(other, ProbabilisticEffect):
			return NotImplemented
		return self._effect_class == other._effect_class and self._distr == other._distr

	def __hash__(self):
		return hash((self._effect_class, frozenset(self._distr.items())))

	def __repr__(self):
		return '{' + ', '.join('{}: {}'.format(e.values, p) for e, p in self._distr.items()) + '}'

	def product(self, other):
		""" Joint distribution of two independent effects on disjoint
			effect classes (Cartesian product of the outcomes)
		"""
		joint_class = self._effect_class.union(other.effect_class)
		return ProbabilisticEffect(joint_class,
					[(e1.merged(e2), p1 * p2) for e1, p1 in self._distr.items() \
												for e2, p2 in other.items()])
