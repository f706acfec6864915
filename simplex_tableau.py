"""
Строит расширенную симплекс-таблицу для  max/min  c·x + c0  при
A·x <= b,  b >= 0,  x >= 0  и доводит её до оптимума (правило Данцига:
самая отрицательная оценка, тест минимального отношения, при равенстве
берётся меньший индекс).
Итоговые статусы:
- OPTIMAL         - все оценки неотрицательны
- UNBOUNDED       - во входящем столбце нет положительных элементов
- ITERATION_LIMIT - сделано maximum_iteration шагов, оптимум не достигнут

Запуск:
    python simplex_tableau.py problem.txt [max_iterations] [-v]
"""
from __future__ import annotations

import logging
import numbers
import re
import sys
from typing import List, Optional, Tuple
import numpy as np

logger = logging.getLogger(__name__)

EPS = 1e-9


def setup_logger(level: int = logging.WARNING) -> None:
    """
    Настраивает корневой логгер: один обработчик на stderr с меткой
    времени. Повторный вызов заменяет прежний обработчик.
    """
    log_format = "[%(asctime)s] [%(levelname)-8s] [%(module)-15s] - %(message)s"
    root = logging.getLogger()
    root.setLevel(level)

    if root.hasHandlers():
        root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S'))
    root.addHandler(handler)


# Ошибки и статусы

class SimplexError(Exception):
    """Базовый класс ошибок симплекс-таблицы."""


class ConstructionError(SimplexError, ValueError):
    """Некорректная постановка (размерности, ограничения, тип элементов)."""


class UnboundedProblem(SimplexError):
    """Ни одна строка ограничений не ограничивает входящую переменную."""

    def __init__(self, column: int, iteration: int):
        super().__init__(
            f'objective is unbounded along column {column} (iteration {iteration})'
        )
        self.column = column
        self.iteration = iteration


class Status:
    CONSTRUCTED = 'CONSTRUCTED'
    OPTIMAL = 'OPTIMAL'
    UNBOUNDED = 'UNBOUNDED'
    ITERATION_LIMIT = 'ITERATION_LIMIT'


class OptimizationType:
    MINIMIZE = 'MIN'
    MAXIMIZE = 'MAX'


# Вывод массивов

def _format_number(v) -> str:
    if isinstance(v, (float, np.floating)):
        return f'{v:g}'
    return str(v)


def format_array(values) -> str:
    """'[1, 2.5]' для одномерной последовательности, '[[1, 0],\\n [0, 1]]' для двумерной."""
    arr = np.asarray(values, dtype=object)
    if arr.ndim == 1:
        return '[' + ', '.join(_format_number(v) for v in arr) + ']'
    if arr.ndim == 2:
        return '[' + ',\n '.join(format_array(row) for row in arr) + ']'
    raise ValueError(f'expected a 1- or 2-dimensional sequence, got {arr.ndim} dimensions')


# Тип элементов

def _check_number_type(number_type) -> None:
    if not isinstance(number_type, type):
        raise ConstructionError(f'number_type must be a class, got {number_type!r}')
    if not issubclass(number_type, (numbers.Number, np.number)):
        raise ConstructionError(f'{number_type.__name__} is not a number type')
    if issubclass(number_type, (bool, int, np.integer)):
        raise ConstructionError(
            f'{number_type.__name__} cannot represent pivot division; '
            'use float, fractions.Fraction or decimal.Decimal'
        )


def _is_float(number_type) -> bool:
    return issubclass(number_type, (float, np.floating))


def _vector(values, number_type) -> np.ndarray:
    if _is_float(number_type):
        return np.array(values, dtype=number_type)
    return np.array([number_type(v) for v in values], dtype=object)


def _matrix(rows, n: int, number_type) -> np.ndarray:
    if _is_float(number_type):
        mat = np.array(rows, dtype=number_type)
    else:
        mat = np.array([[number_type(v) for v in row] for row in rows], dtype=object)
    return mat.reshape(len(rows), n)


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


# Симплекс-таблица

class Simplex:
    """
    Симплекс-таблица одной задачи ЛП с ограничениями вида `<=`.

    Структура таблицы (m ограничений, n переменных):

        row 0      | 1 | -c_1 .. -c_n | 0 .. 0 | c0
        row i      | 0 | a_i1 .. a_in | e_i    | b_i

    Столбец 0 служебный для целевой строки, столбцы n+1..n+m - единичный
    блок балансовых переменных, последний столбец - правые части. Для
    MINIMIZE целевая строка меняет знак, шаг всегда максимизирует.
    """

    def __init__(
        self,
        objective_coefficients,
        objective_constant,
        restriction_coefficients,
        restriction_limits,
        optimization_type: str = OptimizationType.MAXIMIZE,
        maximum_iteration: Optional[int] = None,
        number_type: type = float,
        tolerance: float = EPS,
    ):
        _check_number_type(number_type)
        if optimization_type not in (OptimizationType.MINIMIZE, OptimizationType.MAXIMIZE):
            raise ConstructionError(f'unknown optimization type {optimization_type!r}')
        if maximum_iteration is not None and maximum_iteration < 0:
            raise ConstructionError('maximum_iteration must be non-negative')
        if tolerance < 0:
            raise ConstructionError('tolerance must be non-negative')

        try:
            c = _vector(objective_coefficients, number_type)
            c0 = number_type(objective_constant)
        except (TypeError, ValueError) as e:
            raise ConstructionError(f'bad objective coefficients: {e}') from e
        if c.ndim != 1 or c.size == 0:
            raise ConstructionError('objective coefficients must be a non-empty 1-D sequence')
        n = c.size

        rows = list(restriction_coefficients)
        for i, row in enumerate(rows):
            if np.ndim(row) != 1 or len(row) != n:
                raise ConstructionError(
                    f'restriction {i} has {np.size(row)} coefficients, expected {n}'
                )
        try:
            A = _matrix(rows, n, number_type)
            b = _vector(restriction_limits, number_type)
        except (TypeError, ValueError) as e:
            raise ConstructionError(f'bad restriction data: {e}') from e
        if b.ndim != 1 or b.size != len(rows):
            raise ConstructionError(
                f'{b.size} restriction limits for {len(rows)} restrictions'
            )
        for i, bi in enumerate(b):
            if bi < 0:
                raise ConstructionError(
                    f'restriction {i} has negative limit {bi}; '
                    'the slack basis requires b >= 0'
                )

        self._number_type = number_type
        self._objective_coefficients = _frozen(c)
        self._objective_constant = c0
        self._restriction_coefficients = _frozen(A)
        self._restriction_limits = _frozen(b)
        self._optimization_type = optimization_type
        self._maximum_iteration = maximum_iteration
        self._tolerance = tolerance

        self.reset()

    # постановка задачи

    @property
    def objective_coefficients(self) -> np.ndarray:
        return self._objective_coefficients

    @property
    def objective_constant(self):
        return self._objective_constant

    @property
    def restriction_coefficients(self) -> np.ndarray:
        return self._restriction_coefficients

    @property
    def restriction_limits(self) -> np.ndarray:
        return self._restriction_limits

    @property
    def optimization_type(self) -> str:
        return self._optimization_type

    @property
    def maximum_iteration(self) -> Optional[int]:
        return self._maximum_iteration

    @property
    def number_type(self) -> type:
        return self._number_type

    @property
    def tolerance(self) -> float:
        return self._tolerance

    # состояние таблицы

    @property
    def iteration(self) -> int:
        return self._iteration

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def column_count(self) -> int:
        return self._column_count

    @property
    def variable_count(self) -> int:
        return self._variable_count

    @property
    def restriction_count(self) -> int:
        return self._restriction_count

    @property
    def status(self) -> str:
        return self._status

    @property
    def basis(self) -> List[int]:
        return list(self._basis)

    @property
    def tableau(self) -> np.ndarray:
        return self._T.copy()

    def reset(self) -> np.ndarray:
        n = self._objective_coefficients.size
        m = self._restriction_limits.size
        zero = self._number_type(0)
        one = self._number_type(1)

        self._variable_count = n
        self._restriction_count = m
        self._row_count = m + 1
        self._column_count = n + m + 2

        T = np.full((self._row_count, self._column_count), zero,
                    dtype=self._objective_coefficients.dtype)
        T[0, 0] = one
        if self._optimization_type == OptimizationType.MINIMIZE:
            T[0, 1:n + 1] = self._objective_coefficients
            T[0, -1] = -self._objective_constant
        else:
            T[0, 1:n + 1] = -self._objective_coefficients
            T[0, -1] = self._objective_constant

        T[1:, 1:n + 1] = self._restriction_coefficients
        for i in range(m):
            T[i + 1, n + 1 + i] = one
        T[1:, -1] = self._restriction_limits

        self._T = T
        self._basis = list(range(n + 1, n + m + 1))
        self._iteration = 0
        self._status = Status.CONSTRUCTED
        return self.tableau

    def is_optimized(self) -> bool:
        # последний элемент строки 0 - значение цели, а не оценка
        return bool(np.all(self._T[0, :-1] >= -self._tolerance))

    def _entering_column(self) -> Optional[int]:
        reduced = self._T[0, 1:-1]
        if np.all(reduced >= -self._tolerance):
            return None
        # argmin берёт первый из равных минимумов
        return int(np.argmin(reduced)) + 1

    def _leaving_row(self, col: int) -> Optional[int]:
        column = self._T[1:, col]
        rhs = self._T[1:, -1]
        idx = [i for i, a in enumerate(column) if a > self._tolerance]
        if not idx:
            return None
        ratios = [rhs[i] / column[i] for i in idx]
        min_val = min(ratios)
        for i, r in zip(idx, ratios):
            if abs(r - min_val) <= self._tolerance:
                return i + 1
        return None

    def _pivot(self, row: int, col: int) -> None:
        T = self._T
        T[row] = T[row] / T[row, col]
        for r in range(T.shape[0]):
            if r != row:
                T[r] = T[r] - T[r, col] * T[row]
        self._basis[row - 1] = col

    def next(self) -> np.ndarray:
        """
        Один шаг симплекс-метода. UnboundedProblem, если во входящем столбце
        нет положительных элементов; в оптимуме ничего не делает.
        """
        col = self._entering_column()
        if col is None:
            logger.debug('tableau already optimal at iteration %d', self._iteration)
            return self.tableau

        row = self._leaving_row(col)
        if row is None:
            self._status = Status.UNBOUNDED
            raise UnboundedProblem(col, self._iteration)

        logger.debug('iteration %d: pivot at row %d, column %d (element %s)',
                     self._iteration + 1, row, col, self._T[row, col])
        self._pivot(row, col)
        self._iteration += 1
        return self.tableau

    def _iterations_left(self) -> bool:
        return self._maximum_iteration is None or self._iteration < self._maximum_iteration

    def solve(self) -> Tuple[np.ndarray, str]:
        self.reset()

        while self._iterations_left() and not self.is_optimized():
            try:
                self.next()
            except UnboundedProblem as e:
                logger.info('solve stopped: %s', e)
                return self.tableau, self._status

        if self.is_optimized():
            self._status = Status.OPTIMAL
            logger.info('optimal after %d iterations, objective %s',
                        self._iteration, self.objective_value())
        else:
            self._status = Status.ITERATION_LIMIT
            logger.warning('no optimum within %d iterations', self._iteration)
        return self.tableau, self._status

    def objective_value(self):
        z = self._T[0, -1]
        if self._optimization_type == OptimizationType.MINIMIZE:
            return -z
        return z

    def solution(self) -> np.ndarray:
        n = self._variable_count
        x = np.full(n, self._number_type(0), dtype=self._T.dtype)
        for i, col in enumerate(self._basis):
            if col <= n:
                x[col - 1] = self._T[i + 1, -1]
        return x

    def __repr__(self) -> str:
        return (f'Simplex(variables={self._variable_count}, '
                f'restrictions={self._restriction_count}, '
                f'sense={self._optimization_type}, status={self._status})')


# Парсеры входа

_math_term = re.compile(r'([+\-]?\s*\d*(?:\.\d*)?)\s*x(\d+)', re.IGNORECASE)
_math_const = re.compile(r'[+\-]?\s*\d+(?:\.\d*)?|[+\-]?\s*\.\d+')


def _parse_expr(expr: str) -> Tuple[dict[int, float], float]:
    coeffs: dict[int, float] = {}
    for m in _math_term.finditer(expr):
        raw, idx = m.groups()
        raw = raw.replace(' ', '')
        coef = 1.0 if raw in ('', '+') else -1.0 if raw == '-' else float(raw)
        if int(idx) < 1:
            raise ValueError(f'variable index must start at 1: x{idx}')
        j = int(idx) - 1
        coeffs[j] = coeffs.get(j, 0.0) + coef
    if not coeffs:
        raise ValueError('empty expression')
    rest = _math_term.sub(' ', expr)
    const = sum(float(t.replace(' ', '')) for t in _math_const.findall(rest))
    return coeffs, const


def _content_lines(text: str) -> List[str]:
    return [
        l.split('#', 1)[0].strip()
        for l in text.splitlines()
        if l.split('#', 1)[0].strip()
    ]


def _parse_math(text: str):
    lines = _content_lines(text)
    if not lines:
        raise ValueError('empty file')

    head = lines[0].split(None, 1)
    if head[0].lower() not in ('max', 'min'):
        raise ValueError('not math format')
    sense = head[0].upper()
    if len(head) == 1:
        raise ValueError('objective missing')
    obj, constant = _parse_expr(head[1])

    rx_all_ge0 = re.compile(r'^x\d*\s*>=\s*0$', re.IGNORECASE)

    constr: List[Tuple[dict[int, float], float]] = []
    for ln in lines[1:]:
        if rx_all_ge0.fullmatch(ln):
            continue
        m_rel = re.search(r'(<=|>=|=)', ln)
        if not m_rel:
            raise ValueError(f'cannot parse line {ln!r}')
        if m_rel.group(1) != '<=':
            raise ValueError(f'only <= restrictions are supported: {ln!r}')
        left, right = ln.split('<=', 1)
        coeffs, const = _parse_expr(left)
        if const:
            raise ValueError(f'constant term on the left side: {ln!r}')
        constr.append((coeffs, float(right.strip())))

    if not constr:
        raise ValueError('no constraints')

    n = max(max(d) for d, _ in constr + [(obj, 0)]) + 1
    m = len(constr)

    c = np.zeros(n)
    for j, v in obj.items():
        c[j] = v
    A = np.zeros((m, n))
    b = np.zeros(m)
    for i, (d, rhs) in enumerate(constr):
        for j, v in d.items():
            A[i, j] = v
        b[i] = rhs

    return sense, c, constant, A, b


def _parse_table(text: str):
    lines = _content_lines(text)
    if not lines:
        raise ValueError('empty file')
    sense = lines[0].upper()
    if sense not in ('MAX', 'MIN'):
        raise ValueError(f'unknown sense {lines[0]!r}')
    if len(lines) < 3:
        raise ValueError("expected sense, 'm n' and objective lines")
    m, n = map(int, lines[1].split())
    c = np.array(lines[2].split(), dtype=float)
    if c.size != n:
        raise ValueError('objective length mismatch')
    if len(lines) < 3 + m:
        raise ValueError(f'expected {m} restriction lines')

    A = np.empty((m, n))
    b = np.empty(m)
    for i in range(m):
        parts = lines[3 + i].split()
        if len(parts) != n + 2:
            raise ValueError(f'cannot parse line {lines[3 + i]!r}')
        if parts[n] != '<=':
            raise ValueError(f'only <= restrictions are supported: {lines[3 + i]!r}')
        A[i] = list(map(float, parts[:n]))
        b[i] = float(parts[n + 1])

    return sense, c, 0.0, A, b


def parse_problem(path: str):
    with open(path, 'r', encoding='utf-8') as f:
        txt = f.read()
    lines = _content_lines(txt)
    if lines and lines[0].upper() in ('MAX', 'MIN'):
        return _parse_table(txt)
    return _parse_math(txt)


# Запуск из командной строки

def main(argv: List[str]):
    args = [a for a in argv[1:] if a not in ('-v', '--verbose')]
    setup_logger(logging.DEBUG if len(args) != len(argv) - 1 else logging.WARNING)

    if len(args) not in (1, 2):
        print('Usage: python simplex_tableau.py <problem.txt> [max_iterations] [-v]')
        sys.exit(2)

    try:
        max_iter = int(args[1]) if len(args) == 2 else None
        sense, c, constant, A, b = parse_problem(args[0])
        engine = Simplex(c, constant, A, b, sense, max_iter)
    except (OSError, ValueError) as e:
        print('Parse error:', e)
        sys.exit(1)

    tableau, status = engine.solve()

    if status == Status.OPTIMAL:
        print(f'F = {engine.objective_value():g}')
        print(' '.join(f'x{i} = {xi:g}' for i, xi in enumerate(engine.solution(), 1)))
    else:
        print(status)
    print('Tableau:')
    print(format_array(tableau))


def cli():
    main(sys.argv)


if __name__ == '__main__':
    main(sys.argv)
