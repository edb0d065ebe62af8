from abc import ABC, abstractmethod
import time

import numpy as np
import gurobipy as gp

# Senses of the linear constraints
LESS_EQUAL = '<='
EQUAL = '=='
GREATER_EQUAL = '>='


class LPSolver(ABC):
	""" An abstract class for the linear/mixed-integer programming capability
		used by the MDP solvers. A concrete solver creates continuous and
		binary variables with bounds, adds named linear constraints, sets a
		linear objective, solves the problem and reports the solution count
		and the values of the variables.
		Linear expressions are given as lists of (coefficient, variable) pairs.
	"""

	@abstractmethod
	def add_var(self, name, lb=0.0, ub=np.inf, binary=False):
		""" Create a new decision variable and return a handle on it
			:param name : the name of the variable
			:param lb : lower bound, -np.inf for unbounded
			:param ub : upper bound, np.inf for unbounded
			:param binary : True for a binary variable, continuous otherwise
		"""
		pass

	@abstractmethod
	def add_constr(self, terms, sense, rhs, name):
		""" Add the linear constraint sum(coeff * var) <sense> rhs
			:param terms : a list of (coefficient, variable) pairs
			:param sense : LESS_EQUAL, EQUAL or GREATER_EQUAL
			:param rhs : the constant right-hand side
			:param name : the name of the constraint
		"""
		pass

	@abstractmethod
	def set_objective(self, terms, minimize=True):
		""" Set the linear objective sum(coeff * var)
		"""
		pass

	@abstractmethod
	def solve(self):
		""" Solve the problem. Infeasibility is reported through sol_count
		"""
		pass

	@property
	@abstractmethod
	def sol_count(self):
		""" Number of solutions found by the last call to solve
		"""
		pass

	@property
	@abstractmethod
	def objective_value(self):
		""" Objective value of the best solution found
		"""
		pass

	@abstractmethod
	def value(self, var):
		""" Value of a variable in the best solution found
		"""
		pass

	@abstractmethod
	def dispose(self):
		""" Release the resources held by the solver
		"""
		pass

	def add_vars(self, name, n, m, lb=0.0, ub=np.inf, binary=False):
		""" Create a n x m matrix of variables named name_i_a
		"""
		return [[self.add_var('{}_{}_{}'.format(name, i, a), lb, ub, binary) \
					for a in range(m)] for i in range(n)]

	def values(self, var_matrix):
		""" Values of a matrix of variables as a numpy array
		"""
		return np.array([[self.value(var) for var in row] for row in var_matrix], dtype=float)

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.dispose()
		return False


class GurobiLPSolver(LPSolver):
	""" LPSolver implemented with Gurobi (gurobipy)
	"""
	_senses = { LESS_EQUAL : gp.GRB.LESS_EQUAL,
				EQUAL : gp.GRB.EQUAL,
				GREATER_EQUAL : gp.GRB.GREATER_EQUAL}

	def __init__(self, name, options):
		""" :param name : the name of the Gurobi model
			:param options : SolverOptions giving the tolerances, time limit and verbosity
		"""
		self._options = options
		self.solve_time = 0
		self._model = gp.Model(name)

		# Define the parameters used by Gurobi for this problem
		self._model.Params.OutputFlag = options.verbose
		self._model.Params.FeasibilityTol = options.feasibility_tol
		self._model.Params.IntFeasTol = options.int_feasibility_tol
		self._model.Params.OptimalityTol = options.feasibility_tol
		if options.time_limit is not None:
			self._model.Params.TimeLimit = options.time_limit

	@staticmethod
	def _bound(val):
		if np.isposinf(val):
			return gp.GRB.INFINITY
		if np.isneginf(val):
			return -gp.GRB.INFINITY
		return val

	def add_var(self, name, lb=0.0, ub=np.inf, binary=False):
		return self._model.addVar(lb=self._bound(lb), ub=self._bound(ub),
					vtype=gp.GRB.BINARY if binary else gp.GRB.CONTINUOUS, name=name)

	def add_constr(self, terms, sense, rhs, name):
		return self._model.addLConstr(gp.LinExpr(terms), self._senses[sense], rhs, name)

	def set_objective(self, terms, minimize=True):
		self._model.setObjective(gp.LinExpr(terms), gp.GRB.MINIMIZE if minimize else gp.GRB.MAXIMIZE)

	def solve(self):
		curr_time = time.time()
		self._model.optimize()
		self.solve_time = time.time() - curr_time
		if self._options.verbose:
			print('[Gurobi model {} : status {}, solutions {}]'.format(self._model.ModelName,
						self._model.Status, self._model.SolCount))
			print('[Solving time : {}]'.format(self.solve_time))

	@property
	def sol_count(self):
		return self._model.SolCount

	@property
	def objective_value(self):
		return self._model.ObjVal

	def value(self, var):
		return var.x

	def dispose(self):
		self._model.dispose()
