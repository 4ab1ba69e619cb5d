from typing import List, Dict

from foodlib.client.exceptions import ActionRejected
from foodlib.client.state import AppState, CART_KEY
from foodlib.utils.logger import logger


def is_valid_cart_line(line) -> bool:
    return (
        isinstance(line, dict)
        and isinstance(line.get('dishId'), str) and len(line['dishId']) > 0
        and isinstance(line.get('quantity'), int) and not isinstance(line.get('quantity'), bool)
        and line['quantity'] > 0
    )


class CartStore:
    """
    Cart lines {dishId, dishName, quantity} kept in the cart slot of AppState.
    Every mutation goes through AppState.set, so subscribers hear about it
    """

    def __init__(self, state: AppState):
        self.state = state

    def load(self) -> List[Dict]:
        lines = self.state.get(CART_KEY)
        if lines is None:
            return []
        if not isinstance(lines, list) or not all(is_valid_cart_line(line) for line in lines):
            logger.warning(f'load ::: stored cart is corrupt, resetting it, {lines=}')
            self.state.set(CART_KEY, [])
            return []
        return lines

    def add_item(self, dish: Dict, quantity) -> List[Dict]:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ActionRejected('Please select a quantity greater than zero')
        dish_id = (dish.get('id') or dish.get('_id')) if isinstance(dish, dict) else None
        if not dish_id:
            raise ActionRejected('This dish cannot be added to the cart')

        lines = self.load()
        for line in lines:
            if line['dishId'] == dish_id:
                line['quantity'] += quantity
                break
        else:
            lines.append({'dishId': dish_id, 'dishName': dish.get('dishName'), 'quantity': quantity})
        self.state.set(CART_KEY, lines)
        logger.info(f'add_item ::: {dish_id=} {quantity=} added to the cart')
        return lines

    def remove_item(self, dish_id: str) -> List[Dict]:
        lines = self.load()
        remaining = [line for line in lines if line['dishId'] != dish_id]
        if len(remaining) != len(lines):
            self.state.set(CART_KEY, remaining)
        return remaining

    def clear(self):
        self.state.set(CART_KEY, [])

    def total_quantity(self) -> int:
        return sum(line['quantity'] for line in self.load())
