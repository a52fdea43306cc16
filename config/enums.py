from enum import Enum


class State(str, Enum):
    LOGIN = "LOGIN"
    OCCASIONS = "OCCASIONS"
    VIEW_OCCASION = "VIEW_OCCASION"
    EDIT_OCCASION = "EDIT_OCCASION"
    DELETE_OCCASION = "DELETE_OCCASION"
    IDLE = "IDLE"
    RECEIPT = "RECEIPT"
    RECEIPT_SETTINGS = "RECEIPT_SETTINGS"
    VIEW_ORDER = "VIEW_ORDER"
    EDIT_ORDER = "EDIT_ORDER"
    SETTINGS = "SETTINGS"
    VIEW_PRODUCT = "VIEW_PRODUCT"
    CREATE_PRODUCT = "CREATE_PRODUCT"
    EDIT_PRODUCT = "EDIT_PRODUCT"
    DELETE_PRODUCT = "DELETE_PRODUCT"
    VIEW_CONSUMER = "VIEW_CONSUMER"
    EDIT_CONSUMER = "EDIT_CONSUMER"


class Transition(str, Enum):
    # login
    CLOSE_LOGIN = "CLOSE_LOGIN"

    # occasions
    START_OCCASION = "START_OCCASION"
    GET_OCCASION = "GET_OCCASION"
    SELECT_OCCASION = "SELECT_OCCASION"
    CANCEL_OCCASION = "CANCEL_OCCASION"
    CLOSE_OCCASION = "CLOSE_OCCASION"
    REOPEN_OCCASION = "REOPEN_OCCASION"
    SAVE_OCCASION = "SAVE_OCCASION"
    DELETE_OCCASION = "DELETE_OCCASION"

    # receipt
    START_RECEIPT = "START_RECEIPT"
    CANCEL_RECEIPT = "CANCEL_RECEIPT"
    SUBMIT_RECEIPT = "SUBMIT_RECEIPT"
    RECEIPT_SETTINGS = "RECEIPT_SETTINGS"
    CLOSE_SETTINGS = "CLOSE_SETTINGS"
    TOGGLE_SETTINGS = "TOGGLE_SETTINGS"
    INCREMENT_PRODUCT = "INCREMENT_PRODUCT"
    DECREMENT_PRODUCT = "DECREMENT_PRODUCT"

    # consumers
    SELECT_CONSUMER = "SELECT_CONSUMER"
    SAVE_CONSUMER = "SAVE_CONSUMER"

    # orders
    SELECT_ORDER = "SELECT_ORDER"
    SAVE_ORDER = "SAVE_ORDER"

    # products
    SELECT_PRODUCT = "SELECT_PRODUCT"
    CREATE_PRODUCT = "CREATE_PRODUCT"
    SAVE_PRODUCT = "SAVE_PRODUCT"
    DELETE_PRODUCT = "DELETE_PRODUCT"
    UNTRASH_PRODUCT = "UNTRASH_PRODUCT"

    # shared item transitions
    EDIT_ITEM = "EDIT_ITEM"
    DELETE_ITEM = "DELETE_ITEM"
    CANCEL_EDIT = "CANCEL_EDIT"
    CANCEL_DELETE = "CANCEL_DELETE"
    CLOSE_ITEM = "CLOSE_ITEM"


class Capability(str, Enum):
    CREATE_PRODUCTS = "create_products"
    EDIT_PRODUCTS = "edit_products"
    DELETE_PRODUCTS = "delete_products"
