# Order in which store modules run their `init` (observer registration order)
MODULE_ORDER = ["consumers", "products", "occasions", "orders", "receipt"]

# Feedback item ids
SPENDING_LIMIT_FEEDBACK_ID = "spending-limit-reached"
INVALID_FIELD_FEEDBACK_PREFIX = "invalid-"

# Generic message codes
GENERIC_INVALID_INPUT = "Generic.Error.InvalidInputValue"
GENERIC_NOT_ALLOWED = "Generic.Error.NotAllowed"
GENERIC_NOT_FOUND = "Generic.Error.NotFound"
GENERIC_TRANSITION_PENDING = "Generic.Error.TransitionPending"
GENERIC_UNKNOWN_ERROR = "Generic.Error.Unknown"

# Default delay used by the delay service when none is given (ms)
DEFAULT_DELAY_MS = 600

# Localized defaults, keyed by message code
TRANSLATIONS = {
    "Generic.Error.InvalidInputValue": "Invalid input value.",
    "Generic.Error.NotAllowed": "You are not allowed to do this.",
    "Generic.Error.NotFound": "The requested item could not be found.",
    "Generic.Error.TransitionPending": "Please wait for the current action to finish.",
    "Generic.Error.Unknown": "Something went wrong.",
    "Consumer.UnknownName": "Unknown consumer",
    "Consumer.UpdatedConsumer": "Updated consumer %s.",
    "Consumer.Error.SpendingLimitShouldBeZeroOrHigher": "The spending limit should be zero or higher.",
    "Consumer.Error.SpendingLimitReached": "The consumer's spending limit is reached.",
    "Product.CreatedNewProduct": "Created product %s.",
    "Product.UpdatedProduct": "Updated product %s.",
    "Product.DeletedProduct": "Deleted product %s.",
    "Product.UntrashedProduct": "Restored product %s.",
    "Product.Error.TitleIsAlreadyInUse": "The title is already in use.",
    "Product.Error.TitleIsEmpty": "The title cannot be empty.",
    "Product.Error.PriceShouldBeGreaterThanZero": "The price should be greater than zero.",
    "Product.Error.NoProductCategory": "Select a product category.",
    "Product.Error.InvalidProductCategory": "The product category is not available.",
    "Occasion.CreatedOccasion": "Created occasion %s.",
    "Occasion.LoadedOccasion": "Loaded occasion %s.",
    "Occasion.UpdatedOccasion": "Updated occasion %s.",
    "Occasion.DeletedOccasion": "Deleted occasion %s.",
    "Occasion.ClosedOccasion": "Closed occasion %s.",
    "Occasion.ReopenedOccasion": "Reopened occasion %s.",
    "Occasion.OpenOccasion": "Open occasion",
    "Occasion.Error.NoOccasion": "Select an occasion first.",
    "Occasion.Error.TitleIsEmpty": "The title cannot be empty.",
    "Occasion.Error.InvalidOccasionDate": "The occasion date is invalid.",
    "Occasion.Error.NoOccasionType": "Select an occasion type.",
    "Occasion.Error.UnavailableOccasionType": "The occasion type is not available.",
    "Order.CreatedOrder": "Created order for %s.",
    "Order.UpdatedOrder": "Updated order for %s.",
    "Order.Error.OccasionClosed": "The occasion is closed.",
    "Order.Error.OccasionClosedEditing": "Orders of a closed occasion cannot be edited.",
    "Order.Error.TimeLocked": "This order can no longer be edited.",
}
