""" Action descriptions: for one action type and one effect class, a total
	function from the discriminants of the action type to the probabilistic
	effects on that effect class.
	Two realizations share the ActionDescription interface:
	- TabularActionDescription, an explicit lookup table built incrementally
		through TabularActionDescriptionBuilder
	- FormulaActionDescription, where the probabilistic effect of a
		discriminant is computed on demand by a user-provided formula
"""
from abc import ABC, abstractmethod

from .state_space import StateVarTuple
from .effects import Discriminant
from ..exceptions import ActionNotFoundError, DiscriminantNotFoundError, \
							IncompatibleActionError, IncompatibleDiscriminantClassError, \
							IncompatibleEffectClassError


def enumerate_discriminants(discr_class, precondition, action):
	""" Enumerate all the discriminants of discr_class for the given action:
		every combination of the applicable values (per the precondition) of
		the variables of the class appears exactly once.
		:param discr_class : the DiscriminantClass
		:param precondition : the Precondition of the action type
		:param action : the action
		:return : a list of Discriminant
	"""
	var_defs = discr_class.var_defs

	def _partial_assignments(index):
		# The empty class has a single (empty) assignment
		if index == len(var_defs):
			return [dict()]
		var_def = var_defs[index]
		partials = _partial_assignments(index + 1)
		assignments = list()
		for value in precondition.get_applicable_values(action, var_def):
			for partial in partials:
				assignment = dict(partial)
				assignment[var_def] = value
				assignments.append(assignment)
		return assignments

	return [Discriminant(discr_class, StateVarTuple(assign)) for assign in _partial_assignments(0)]


class ActionDescription(ABC):
	""" Interface of an action description for one (action type, effect class) pair
	"""

	@property
	@abstractmethod
	def action_definition(self):
		""" The ActionDefinition (action type) this description is for
		"""
		pass

	@property
	@abstractmethod
	def precondition(self):
		""" The Precondition of the action type
		"""
		pass

	@property
	@abstractmethod
	def discriminant_class(self):
		""" The DiscriminantClass whose values select the probabilistic effect
		"""
		pass

	@property
	@abstractmethod
	def effect_class(self):
		""" The EffectClass changed by the action type
		"""
		pass

	@abstractmethod
	def get_probabilistic_effect(self, discriminant, action):
		""" Return the ProbabilisticEffect of action under the given discriminant
			:param discriminant : a Discriminant of discriminant_class
			:param action : an action of action_definition
		"""
		pass

	def get_all_discriminants(self, action):
		""" Return all the discriminants of action implied by the precondition
		"""
		self._check_action(action)
		return enumerate_discriminants(self.discriminant_class, self.precondition, action)

	def get_probabilistic_effect_at(self, state, action):
		""" Return the ProbabilisticEffect of action in the given state.
			The state must assign every variable of the discriminant class
		"""
		discriminant = Discriminant(self.discriminant_class, state.project(self.discriminant_class))
		return self.get_probabilistic_effect(discriminant, action)

	def _check_action(self, action):
		if action not in self.action_definition:
			raise ActionNotFoundError(action)

	def _check_discriminant(self, discriminant):
		if discriminant.discriminant_class != self.discriminant_class:
			raise IncompatibleDiscriminantClassError(discriminant.discriminant_class)


class TabularActionDescription(ActionDescription):
	""" Action description stored as a lookup table
		(action, discriminant) -> probabilistic effect
	"""
	def __init__(self, action_def, precondition, discr_class, effect_class, table):
		self._action_def = action_def
		self._precondition = precondition
		self._discr_class = discr_class
		self._effect_class = effect_class
		self._table = dict(table)

	@property
	def action_definition(self):
		return self._action_def

	@property
	def precondition(self):
		return self._precondition

	@property
	def discriminant_class(self):
		return self._discr_class

	@property
	def effect_class(self):
		return self._effect_class

	def get_probabilistic_effect(self, discriminant, action):
		self._check_action(action)
		self._check_discriminant(discriminant)
		try:
			return self._table[(action, discriminant)]
		except KeyError:
			raise DiscriminantNotFoundError(discriminant, action) from None

	def __eq__(self, other):
		if not isinstance(other, TabularActionDescription):
			return NotImplemented
		return self._action_def == other._action_def and self._discr_class == other._discr_class \
				and self._effect_class == other._effect_class and self._table == other._table

	def __hash__(self):
		return hash((self._action_def, self._discr_class, self._effect_class, len(self._table)))


class TabularActionDescriptionBuilder:
	""" Build a TabularActionDescription one entry at a time.
		build() checks that every discriminant implied by the precondition has
		an entry, for every action of the action type.
	"""
	def __init__(self, action_def, precondition, discr_class, effect_class):
		self._action_def = action_def
		self._precondition = precondition
		self._discr_class = discr_class
		self._effect_class = effect_class
		self._table = dict()

	def put(self, prob_effect, discriminant, action):
		""" Set the probabilistic effect of action under discriminant
		"""
		if action not in self._action_def:
			raise IncompatibleActionError(action, self._action_def.name)
		if discriminant.discriminant_class != self._discr_class:
			raise IncompatibleDiscriminantClassError(discriminant.discriminant_class)
		if prob_effect.effect_class != self._effect_class:
			raise IncompatibleEffectClassError(prob_effect.effect_class)
		self._table[(action, discriminant)] = prob_effect
		return self

	def build(self):
		for action in self._action_def:
			for discriminant in enumerate_discriminants(self._discr_class, self._precondition, action):
				if (action, discriminant) not in self._table:
					raise DiscriminantNotFoundError(discriminant, action)
		return TabularActionDescription(self._action_def, self._precondition,
					self._discr_class, self._effect_class, self._table)


class FormulaActionDescription(ActionDescription):
	""" Action description whose probabilistic effects are computed by a formula.
		The formula is a callable (discriminant, action) -> ProbabilisticEffect
	"""
	def __init__(self, action_def, precondition, discr_class, effect_class, formula):
		self._action_def = action_def
		self._precondition = precondition
		self._discr_class = discr_class
		self._effect_class = effect_class
		self._formula = formula

	@property
	def action_definition(self):
		return self._action_def

	@property
	def precondition(self):
		return self._precondition

	@property
	def discriminant_class(self):
		return self._discr_class

	@property
	def effect_class(self):
		return self._effect_class

	def get_probabilistic_effect(self, discriminant, action):
		self._check_action(action)
		self._check_discriminant(discriminant)
		prob_effect = self._formula(discriminant, action)
		if prob_effect.effect_class != self._effect_class:
			raise IncompatibleEffectClassError(prob_effect.effect_class)
		return prob_effect


def merge_action_descriptions(desc_a, desc_b):
	""" Merge two action descriptions of the same action type on disjoint
		effect classes into a single tabular description: the discriminant
		classes are unioned and, for each joint discriminant, the two
		probabilistic effects are combined by Cartesian product
	"""
	if desc_a.action_definition != desc_b.action_definition:
		raise IncompatibleActionError(desc_b.action_definition.name, desc_a.action_definition.name)
	if desc_a.effect_class.overlaps(desc_b.effect_class):
		raise IncompatibleEffectClassError(desc_b.effect_class)

	discr_class = desc_a.discriminant_class.union(desc_b.discriminant_class)
	effect_class = desc_a.effect_class.union(desc_b.effect_class)
	builder = TabularActionDescriptionBuilder(desc_a.action_definition, desc_a.precondition,
					discr_class, effect_class)
	for action in desc_a.action_definition:
		for discriminant in enumerate_discriminants(discr_class, desc_a.precondition, action):
			prob_a = desc_a.get_probabilistic_effect_at(discriminant.values, action)
			prob_b = desc_b.get_probabilistic_effect_at(discriminant.values, action)
			builder.put(prob_a.product(prob_b), discriminant, action)
	return builder.build()
