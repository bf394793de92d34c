"""Static desktop renaming script shown in the UI for copying."""

OFFLINE_SCRIPT = '''import os
import tkinter as tk
from tkinter import filedialog, messagebox

class VisionRenamer:
    def __init__(self, root):
        self.root = root
        self.root.title("Vision Pro - Offline Renamer")
        self.root.geometry("600x400")
        self.root.configure(bg="#020617")
        self.folder_path = tk.StringVar()
        self.setup_ui()

    def setup_ui(self):
        tk.Label(self.root, text="OFFLINE BULK RENAMER", font=("Impact", 24), bg="#020617", fg="#6366f1").pack(pady=30)
        tk.Button(self.root, text="BROWSE FOLDER", command=self.browse, bg="#6366f1", fg="white", font=("Arial", 10, "bold"), padx=20, pady=10).pack()
        tk.Entry(self.root, textvariable=self.folder_path, state='readonly', width=50).pack(pady=20)
        tk.Button(self.root, text="RENAME NOW", command=self.run, bg="#10b981", fg="white", font=("Arial", 12, "bold"), padx=40, pady=15).pack(pady=20)

    def browse(self):
        p = filedialog.askdirectory()
        if p: self.folder_path.set(p)

    def run(self):
        path = self.folder_path.get()
        if not path: return
        files = sorted([f for f in os.listdir(path) if f.lower().endswith(('.png', '.jpg', '.jpeg', '.webp'))])
        for i, f in enumerate(files, 1):
            ext = os.path.splitext(f)[1]
            os.rename(os.path.join(path, f), os.path.join(path, f"auto-renamed-{i:03d}{ext}"))
        messagebox.showinfo("Success", "All files renamed!")

if __name__ == "__main__":
    root = tk.Tk()
    VisionRenamer(root)
    root.mainloop()
'''
