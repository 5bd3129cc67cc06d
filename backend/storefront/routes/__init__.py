from storefront.routes import admin, auth, cart, inventory, orders, payments, products, reviews, uploads

routers = [
    auth.router,
    products.router,
    orders.router,
    cart.router,
    inventory.router,
    reviews.router,
    admin.router,
    payments.router,
    uploads.router,
]
