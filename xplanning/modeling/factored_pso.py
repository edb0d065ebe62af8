""" Factored probabilistic STRIPS operators (PSO), the transition function of
	a factored MDP, and the chaining of effect classes across action types.
"""
from .action_description import merge_action_descriptions
from ..exceptions import ActionNotFoundError, IncompatibleActionError, \
							EffectClassNotFoundError, EffectClassPartitionError


class FactoredPSO:
	""" One action type's precondition plus one action description per
		effect class. The effect classes of a PSO are pairwise disjoint.
		Use FactoredPSOBuilder to create it
	"""
	def __init__(self, action_def, precondition, action_descriptions):
		self._action_def = action_def
		self._precondition = precondition
		self._descriptions = { desc.effect_class : desc for desc in action_descriptions}
		self._merged = dict()

	@property
	def action_definition(self):
		return self._action_def

	@property
	def precondition(self):
		return self._precondition

	@property
	def effect_classes(self):
		return tuple(self._descriptions)

	@property
	def action_descriptions(self):
		return tuple(self._descriptions.values())

	@property
	def affected_vars(self):
		""" All the variables the action type may change
		"""
		return frozenset(var_def for ec in self._descriptions for var_def in ec)

	def get_action_description(self, effect_class):
		try:
			return self._descriptions[effect_class]
		except KeyError:
			raise EffectClassNotFoundError(effect_class) from None

	def get_discriminant_class(self, effect_class):
		return self.get_action_description(effect_class).discriminant_class

	def get_possible_impact(self, effect_class, action):
		""" Return the set of effects on effect_class that action can produce
			under any of its discriminants
		"""
		desc = self.get_action_description(effect_class)
		return { effect for discr in desc.get_all_discriminants(action) \
					for effect in desc.get_probabilistic_effect(discr, action)}

	def is_action_applicable(self, action, state):
		if action not in self._action_def:
			raise ActionNotFoundError(action)
		return self._precondition.is_action_applicable(action, state)

	def get_merged_action_description(self, effect_classes):
		""" Return a single action description for the union of the given
			effect classes of this PSO. Descriptions of several effect classes
			are merged once and cached
		"""
		key = frozenset(effect_classes)
		if len(key) == 1:
			return self.get_action_description(next(iter(key)))
		if key not in self._merged:
			descs = [self.get_action_description(ec) for ec in effect_classes]
			merged = descs[0]
			for desc in descs[1:]:
				merged = merge_action_descriptions(merged, desc)
			self._merged[key] = merged
		return self._merged[key]

	def __eq__(self, other):
		if not isinstance(other, FactoredPSO):
			return NotImplemented
		return self._action_def == other._action_def and self._precondition == other._precondition \
				and self._descriptions == other._descriptions

	def __hash__(self):
		return hash((self._action_def, frozenset(self._descriptions)))

	def __repr__(self):
		return 'FactoredPSO({})'.format(self._action_def.name)


class FactoredPSOBuilder:
	""" Mutable builder of a FactoredPSO
	"""
	def __init__(self, action_def, precondition):
		if precondition.action_definition != action_def:
			raise IncompatibleActionError(precondition.action_definition.name, action_def.name)
		self._action_def = action_def
		self._precondition = precondition
		self._descriptions = list()

	def add_action_description(self, action_description):
		if action_description.action_definition != self._action_def:
			raise IncompatibleActionError(action_description.action_definition.name, self._action_def.name)
		for desc in self._descriptions:
			if desc.effect_class.overlaps(action_description.effect_class):
				# Effect classes of one action type must partition what it changes
				raise EffectClassPartitionError('Effect classes {} and {} of {} overlap'.format(
							desc.effect_class, action_description.effect_class, self._action_def.name))
		self._descriptions.append(action_description)
		return self

	def build(self):
		return FactoredPSO(self._action_def, self._precondition, self._descriptions)


class EffectClassChain:
	""" A group of (PSO, effect class) pairs whose effect classes overlap,
		directly or transitively. All the variables of a chain are updated
		together by one module of the flattened model.
	"""
	def __init__(self, members=()):
		self._members = dict()
		for pso, effect_class in members:
			self._members.setdefault(pso, list())
			if effect_class not in self._members[pso]:
				self._members[pso].append(effect_class)
		self._var_defs = frozenset(var_def for ecs in self._members.values() \
										for ec in ecs for var_def in ec)

	@property
	def var_defs(self):
		return self._var_defs

	@property
	def psos(self):
		return tuple(self._members)

	@property
	def members(self):
		""" The frozenset of (PSO, effect class) pairs in the chain
		"""
		return frozenset((pso, ec) for pso, ecs in self._members.items() for ec in ecs)

	def effect_classes_of(self, pso):
		return tuple(self._members.get(pso, ()))

	def overlaps(self, effect_class):
		return not self._var_defs.isdisjoint(effect_class.var_defs)

	def merged(self, other):
		return EffectClassChain(list(self.members_ordered()) + list(other.members_ordered()))

	def members_ordered(self):
		return ((pso, ec) for pso, ecs in self._members.items() for ec in ecs)

	def action_description(self, pso):
		""" Return the (possibly merged) action description of pso on this
			chain, or None if pso does not change any variable of the chain
		"""
		ecs = self.effect_classes_of(pso)
		if len(ecs) == 0:
			return None
		return pso.get_merged_action_description(ecs)

	def __repr__(self):
		return 'EffectClassChain({})'.format(', '.join('{}:{}'.format(p.action_definition.name, ec) \
					for p, ec in self.members_ordered()))


def chain_effect_classes(psos):
	""" Incrementally cluster the effect classes of all the PSOs: a new effect
		class is merged with every existing chain it overlaps (and those
		chains with each other), otherwise it starts a new chain.
		The resulting partition does not depend on the order of psos.
		:param psos : an iterable of FactoredPSO
		:return : a list of EffectClassChain
	"""
	chains = list()
	for pso in psos:
		for effect_class in pso.effect_classes:
			new_chain = EffectClassChain([(pso, effect_class)])
			remaining = list()
			for chain in chains:
				if chain.overlaps(effect_class):
					new_chain = chain.merged(new_chain)
				else:
					remaining.append(chain)
			remaining.append(new_chain)
			chains = remaining
	return chains


class TransitionFunction:
	""" The set of factored PSOs of all the action types of a model
	"""
	def __init__(self, psos):
		self._psos = dict()
		for pso in psos:
			if pso.action_definition in self._psos:
				raise IncompatibleActionError(pso.action_definition.name)
			self._psos[pso.action_definition] = pso
		self._chains = None

	def get_pso(self, action_def):
		try:
			return self._psos[action_def]
		except KeyError:
			raise ActionNotFoundError(action_def.name) from None

	def get_pso_of_action(self, action):
		for action_def, pso in self._psos.items():
			if action in action_def:
				return pso
		raise ActionNotFoundError(action)

	def __iter__(self):
		return iter(self._psos.values())

	def __len__(self):
		return len(self._psos)

	def effect_class_chains(self):
		""" Return (and cache) the chains of effect classes of this model
		"""
		if self._chains is None:
			self._chains = chain_effect_classes(self._psos.values())
		return self._chains
